"""
Payments Module

This module records real-world transfers between trip members.

A recorded payment is an immutable historical fact: once appended it feeds
every later balance calculation. Balances are never edited directly.

Data Model:
    RecordedPayment stored at: trips/{trip_id}/recordedPayments/{payment_id}
    Fields:
        - fromUserId: uid of the member who paid
        - toUserId: uid of the member who received
        - amount: float (> 0)
        - currency: trip base currency
        - dateRecorded: server timestamp
        - recordedBy: uid of the member who entered it
        - notes: string

Functions:
    record_payment: Append one recorded payment.
    record_transaction: Record a suggested settlement transaction as paid.
    get_recorded_payments: Get all recorded payments for a trip.
"""

import logging
from typing import Optional

from firebase_admin import firestore

from tripsettle.firebase_store import RECORDED_PAYMENTS, add_to_subcollection, fetch_subcollection
from tripsettle.models import RecordedPayment, SettlementTransaction
from tripsettle.trips import get_trip
from tripsettle.utils import to_decimal, validate_currency, validate_non_empty_string

logger = logging.getLogger(__name__)


def record_payment(
    trip_id: str,
    from_user_id: str,
    to_user_id: str,
    amount,
    recorded_by: str,
    notes: Optional[str] = None
) -> RecordedPayment:
    """
    Append a recorded payment to a trip.

    Args:
        trip_id: The ID of the trip.
        from_user_id: Member who paid.
        to_user_id: Member who received.
        amount: Positive amount in the trip's base currency.
        recorded_by: uid of the member entering the payment.
        notes: Optional note.

    Returns:
        RecordedPayment: The stored payment. ``date_recorded`` is assigned by
        the server and is None on the returned object.

    Raises:
        ValueError: If input validation fails, either party is not a trip
            member, or the trip's base currency is misconfigured.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(from_user_id, "from_user_id")
    validate_non_empty_string(to_user_id, "to_user_id")
    validate_non_empty_string(recorded_by, "recorded_by")

    if from_user_id == to_user_id:
        raise ValueError("a payment needs two different members")

    amount = to_decimal(amount)
    if amount <= 0:
        raise ValueError(f"amount must be positive, got: {amount}")

    trip = get_trip(trip_id)
    for field_name, user_id in (("from_user_id", from_user_id), ("to_user_id", to_user_id)):
        if user_id not in trip.members:
            raise ValueError(f"{field_name} '{user_id}' is not a member of trip {trip_id}")

    try:
        validate_currency(trip.base_currency)
    except ValueError:
        logger.error("Trip %s has invalid base currency %r", trip_id, trip.base_currency)
        raise ValueError(f"trip {trip_id} has no valid base currency; cannot record payment")

    data = {
        "fromUserId": from_user_id,
        "toUserId": to_user_id,
        # Unrounded so a plan's transfer clears the exact balance it was computed from
        "amount": float(amount),
        "currency": trip.base_currency,
        "dateRecorded": firestore.SERVER_TIMESTAMP,
        "recordedBy": recorded_by,
        "notes": (notes or "").strip(),
    }

    payment_id = add_to_subcollection(trip_id, RECORDED_PAYMENTS, data)
    logger.info(
        "Recorded payment %s in trip %s: %s -> %s %s",
        payment_id, trip_id, from_user_id, to_user_id, amount,
    )
    return RecordedPayment.from_dict(payment_id, {**data, "amount": amount, "dateRecorded": None})


def record_transaction(
    trip_id: str,
    transaction: SettlementTransaction,
    recorded_by: str,
    notes: Optional[str] = None
) -> RecordedPayment:
    """Record a settlement transaction the user confirmed as paid."""
    return record_payment(
        trip_id=trip_id,
        from_user_id=transaction.from_user_id,
        to_user_id=transaction.to_user_id,
        amount=transaction.amount,
        recorded_by=recorded_by,
        notes=notes,
    )


def get_recorded_payments(trip_id: str) -> list[RecordedPayment]:
    """
    Get all recorded payments for a trip, oldest first.

    Order matters only for display; balances do not depend on it.
    """
    docs = fetch_subcollection(trip_id, RECORDED_PAYMENTS, order_by="dateRecorded")
    return [RecordedPayment.from_dict(doc_id, data) for doc_id, data in docs]
