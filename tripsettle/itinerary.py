"""
Itinerary Module

This module manages the events planned for a trip.

Data Model:
    ItineraryEvent stored at: trips/{trip_id}/itineraryEvents/{event_id}
    Fields:
        - title: string
        - type: one of EVENT_TYPES
        - date: string (YYYY-MM-DD)
        - time: string (HH:MM) or absent
        - endDate: string (YYYY-MM-DD) or absent
        - location, notes: string or absent
        - createdAt: server timestamp

Functions:
    add_event: Add an event to a trip's itinerary.
    get_events: Get all itinerary events, earliest first.
"""

import re
from typing import Optional

from firebase_admin import firestore

from tripsettle.firebase_store import ITINERARY_EVENTS, add_to_subcollection, fetch_subcollection
from tripsettle.models import ItineraryEvent
from tripsettle.utils import validate_date, validate_non_empty_string


EVENT_TYPES = ("Activity", "Flight", "Accommodation", "Transport", "Dining", "Other")

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_time(value: str, field_name: str) -> None:
    if not _TIME_PATTERN.match(value):
        raise ValueError(f"{field_name} must be in HH:MM format, got: {value}")


def add_event(
    trip_id: str,
    title: str,
    event_type: str,
    date: str,
    time: Optional[str] = None,
    end_date: Optional[str] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None
) -> ItineraryEvent:
    """
    Add an event to a trip's itinerary.

    Optional fields are only written when given.

    Raises:
        ValueError: If input validation fails.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(title, "title")
    validate_date(date, "date")
    if event_type not in EVENT_TYPES:
        raise ValueError(f"type must be one of {EVENT_TYPES}, got: {event_type}")

    data = {
        "title": title.strip(),
        "type": event_type,
        "date": date,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }

    if time:
        _validate_time(time, "time")
        data["time"] = time
    if end_date:
        validate_date(end_date, "end_date")
        if end_date < date:
            raise ValueError(f"end_date ({end_date}) cannot be before date ({date})")
        data["endDate"] = end_date
    if location:
        data["location"] = location.strip()
    if notes:
        data["notes"] = notes.strip()

    event_id = add_to_subcollection(trip_id, ITINERARY_EVENTS, data)
    return ItineraryEvent.from_dict(event_id, {**data, "createdAt": None})


def get_events(trip_id: str) -> list[ItineraryEvent]:
    """Get all itinerary events for a trip, earliest first."""
    docs = fetch_subcollection(trip_id, ITINERARY_EVENTS, order_by="date")
    events = [ItineraryEvent.from_dict(doc_id, data) for doc_id, data in docs]
    # Same-day events without a time go first
    return sorted(events, key=lambda e: (e.date, e.time or ""))
