"""
Trips Module

This module handles creating and reading trips.

Data Model:
    Trip stored at: trips/{trip_id}
    Fields:
        - name, destination, description: string
        - startDate, endDate: string (YYYY-MM-DD)
        - baseCurrency: 3-letter currency code every amount is recorded in
        - ownerId: uid of the creator
        - members: list of uids (the owner is the first member)
        - createdAt: server timestamp

Functions:
    create_trip: Create a new trip owned by a user.
    get_trip: Get a trip by ID.
    list_user_trips: List the trips a user belongs to.
"""

import logging

from firebase_admin import firestore

from tripsettle.config.settings import settings
from tripsettle.firebase_store import TRIPS, require_db, trip_ref
from tripsettle.models import Trip
from tripsettle.utils import validate_currency, validate_date, validate_non_empty_string

logger = logging.getLogger(__name__)


def create_trip(
    name: str,
    destination: str,
    start_date: str,
    end_date: str,
    owner_id: str,
    base_currency: str = None,
    description: str = ""
) -> Trip:
    """
    Create a new trip.

    Args:
        name: Trip name.
        destination: Where the trip goes.
        start_date: First day of the trip (YYYY-MM-DD).
        end_date: Last day of the trip (YYYY-MM-DD), not before start_date.
        owner_id: uid of the creating user; becomes the only member.
        base_currency: Currency code for all amounts (default from settings).
        description: Optional free text.

    Returns:
        Trip: The created trip.

    Raises:
        ValueError: If input validation fails.
        RuntimeError: If Firestore is not available.
    """
    base_currency = (base_currency or settings.default_currency).upper()

    validate_non_empty_string(name, "name")
    validate_non_empty_string(destination, "destination")
    validate_non_empty_string(owner_id, "owner_id")
    validate_date(start_date, "start_date")
    validate_date(end_date, "end_date")
    validate_currency(base_currency)

    if end_date < start_date:
        raise ValueError(f"end_date ({end_date}) cannot be before start_date ({start_date})")

    data = {
        "name": name.strip(),
        "destination": destination.strip(),
        "startDate": start_date,
        "endDate": end_date,
        "description": (description or "").strip(),
        "baseCurrency": base_currency,
        "ownerId": owner_id,
        "members": [owner_id],
        "createdAt": firestore.SERVER_TIMESTAMP,
    }

    _, doc_ref = require_db().collection(TRIPS).add(data)
    logger.info("Created trip %s (%s) for owner %s", doc_ref.id, data["name"], owner_id)

    return Trip.from_dict(doc_ref.id, {**data, "createdAt": None})


def get_trip(trip_id: str) -> Trip:
    """
    Get a trip by ID.

    Raises:
        ValueError: If trip_id is invalid.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    doc = trip_ref(trip_id).get()
    if not doc.exists:
        raise LookupError(f"Trip {trip_id} not found")
    return Trip.from_dict(doc.id, doc.to_dict())


def list_user_trips(uid: str) -> list[Trip]:
    """
    List every trip the user is a member of, latest start date first.

    Raises:
        ValueError: If uid is invalid.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(uid, "uid")

    query = (
        require_db().collection(TRIPS)
        .where("members", "array_contains", uid)
        .order_by("startDate", direction=firestore.Query.DESCENDING)
    )
    return [Trip.from_dict(doc.id, doc.to_dict()) for doc in query.stream()]
