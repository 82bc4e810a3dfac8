"""
Firebase Store Module

This module holds the Firestore access helpers shared by the trip, member,
expense, payment, itinerary and packing-list modules.

Derived results (balances, settlement plans) are never stored; they are
recomputed from the collections below on every request.

Firestore Structure:
    users/{uid}
        - displayName, email (lowercase), photoURL

    trips/{trip_id}
        - name, destination, startDate, endDate, description
        - baseCurrency, ownerId, members (list of uids), createdAt

    trips/{trip_id}/expenses/{expense_id}
    trips/{trip_id}/recordedPayments/{payment_id}
    trips/{trip_id}/itineraryEvents/{event_id}
    trips/{trip_id}/packingItems/{item_id}

Functions:
    require_db: Get the Firestore client or fail.
    trip_ref: Document reference for a trip.
    fetch_subcollection: Read all documents of a trip subcollection.
    add_to_subcollection: Append a document with an auto-generated ID.
"""

import logging
from typing import Optional

from firebase_admin import firestore

from tripsettle.config.firebase_config import get_db
from tripsettle.utils import validate_non_empty_string

logger = logging.getLogger(__name__)

TRIPS = "trips"
USERS = "users"
EXPENSES = "expenses"
RECORDED_PAYMENTS = "recordedPayments"
ITINERARY_EVENTS = "itineraryEvents"
PACKING_ITEMS = "packingItems"


def require_db():
    """
    Get the Firestore client.

    Raises:
        RuntimeError: If Firestore is not available.
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")
    return db


def trip_ref(trip_id: str):
    """
    Get the document reference for ``trips/{trip_id}``.

    Raises:
        ValueError: If trip_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(trip_id, "trip_id")
    return require_db().collection(TRIPS).document(trip_id)


def fetch_subcollection(
    trip_id: str,
    name: str,
    order_by: Optional[str] = None,
    descending: bool = False
) -> list[tuple[str, dict]]:
    """
    Read every document of ``trips/{trip_id}/{name}``.

    Args:
        trip_id: The ID of the trip.
        name: Subcollection name, e.g. EXPENSES.
        order_by: Optional field to order by.
        descending: Order direction when order_by is given.

    Returns:
        list[tuple[str, dict]]: (document ID, document data) pairs.

    Raises:
        ValueError: If trip_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    query = trip_ref(trip_id).collection(name)
    if order_by:
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        query = query.order_by(order_by, direction=direction)

    return [(doc.id, doc.to_dict()) for doc in query.stream()]


def add_to_subcollection(trip_id: str, name: str, data: dict) -> str:
    """
    Append a document to ``trips/{trip_id}/{name}``.

    Returns:
        str: The auto-generated document ID.
    """
    _, doc_ref = trip_ref(trip_id).collection(name).add(data)
    logger.info("Added %s/%s to trip %s", name, doc_ref.id, trip_id)
    return doc_ref.id
