"""
Firebase Configuration

Lazily initializes the Firebase Admin SDK and hands out a Firestore client.

Credentials are read from ``FIREBASE_SERVICE_ACCOUNT`` (inline JSON) or from
the file named by ``FIREBASE_CREDENTIALS_PATH``. When neither is available
``get_db()`` returns None and callers raise ``RuntimeError``.
"""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore

from tripsettle.config.settings import settings

logger = logging.getLogger(__name__)

_db = None


def _load_credentials():
    if settings.firebase_service_account:
        return credentials.Certificate(json.loads(settings.firebase_service_account))
    if os.path.exists(settings.firebase_credentials_path):
        return credentials.Certificate(settings.firebase_credentials_path)
    return None


def get_db():
    """
    Get the shared Firestore client, initializing Firebase on first use.

    Returns:
        google.cloud.firestore.Client | None: The client, or None if no
        credentials are configured or initialization failed.
    """
    global _db
    if _db is not None:
        return _db

    cred = _load_credentials()
    if cred is None:
        logger.warning("No Firebase credentials configured; Firestore disabled")
        return None

    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred)
        _db = firestore.client()
    except ValueError as e:
        logger.error("Firebase initialization failed: %s", e)
        return None

    return _db


def set_db(client) -> None:
    """Replace the shared Firestore client (used by tests and scripts)."""
    global _db
    _db = client
