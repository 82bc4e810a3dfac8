"""
Expenses Module

This module handles all expense-related operations for a trip.

Features:
    - Add/delete expenses
    - Categorize expenses
    - Track who paid and who shares the cost
    - Reject split types other than an equal split

Data Model:
    Expense stored at: trips/{trip_id}/expenses/{expense_id}
    Fields:
        - description: string (1-100 chars)
        - amount: float (>= 0.01)
        - currency: string (trip base currency)
        - paidBy: member uid
        - date: string (YYYY-MM-DD)
        - category: one of EXPENSE_CATEGORIES
        - participants: non-empty list of member uids
        - splitType: "equally"
        - notes: string (<= 500 chars)
        - createdAt: server timestamp

Functions:
    add_expense: Add a new expense to a trip.
    delete_expense: Delete an expense from a trip.
    get_expenses: Get all expenses for a trip.
"""

import logging
from decimal import Decimal
from typing import Optional

from firebase_admin import firestore

from tripsettle.errors import UnsupportedSplitError
from tripsettle.firebase_store import (
    EXPENSES,
    add_to_subcollection,
    fetch_subcollection,
    trip_ref,
)
from tripsettle.models import Expense, SPLIT_EQUALLY, SPLIT_TYPES
from tripsettle.trips import get_trip
from tripsettle.utils import round_money, to_decimal, validate_date, validate_non_empty_string

logger = logging.getLogger(__name__)


# Valid expense categories
EXPENSE_CATEGORIES = ("Food", "Transport", "Accommodation", "Activities", "Shopping", "Miscellaneous")

MIN_AMOUNT = Decimal("0.01")
MAX_DESCRIPTION_LENGTH = 100
MAX_NOTES_LENGTH = 500


def add_expense(
    trip_id: str,
    description: str,
    amount,
    paid_by: str,
    participants: list[str],
    date: str,
    category: str,
    split_type: str = SPLIT_EQUALLY,
    notes: Optional[str] = None
) -> Expense:
    """
    Add a new expense to a trip.

    Args:
        trip_id: The ID of the trip.
        description: What the money was spent on.
        amount: Amount of the expense (at least 0.01).
        paid_by: Member uid of who paid the expense.
        participants: Member uids who share the cost equally.
        date: Date of the expense (YYYY-MM-DD).
        category: One of EXPENSE_CATEGORIES.
        split_type: Must be "equally".
        notes: Optional note.

    Returns:
        Expense: The created expense object.

    Raises:
        ValueError: If input validation fails.
        UnsupportedSplitError: If split_type is not "equally".
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.

    Notes:
        - Payer does NOT have to be in the participants list
        - The amount is recorded in the trip's base currency
    """
    # Validate inputs
    validate_non_empty_string(description, "description")
    validate_non_empty_string(paid_by, "paid_by")
    validate_date(date, "date")

    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")

    notes = (notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValueError(f"notes must be at most {MAX_NOTES_LENGTH} characters")

    amount = to_decimal(amount)
    if amount < MIN_AMOUNT:
        raise ValueError(f"amount must be at least {MIN_AMOUNT}, got: {amount}")

    if category not in EXPENSE_CATEGORIES:
        raise ValueError(f"category must be one of {EXPENSE_CATEGORIES}, got: {category}")

    if split_type not in SPLIT_TYPES:
        raise ValueError(f"split_type must be one of {SPLIT_TYPES}, got: {split_type}")
    if split_type != SPLIT_EQUALLY:
        raise UnsupportedSplitError(f"split type '{split_type}' is not supported yet")

    if not isinstance(participants, list) or len(participants) == 0:
        raise ValueError("participants must be a non-empty list of member IDs")

    # Payer and participants must be current trip members
    trip = get_trip(trip_id)
    if paid_by not in trip.members:
        raise ValueError(f"paid_by '{paid_by}' is not a member of trip {trip_id}")
    for participant in participants:
        if participant not in trip.members:
            raise ValueError(f"participant '{participant}' is not a member of trip {trip_id}")

    # Duplicates would double a participant's share
    participants = list(dict.fromkeys(participants))

    data = {
        "description": description,
        "amount": round_money(amount),
        "currency": trip.base_currency,
        "paidBy": paid_by,
        "date": date,
        "category": category,
        "participants": participants,
        "splitType": split_type,
        "notes": notes,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }

    expense_id = add_to_subcollection(trip_id, EXPENSES, data)
    return Expense.from_dict(expense_id, data)


def delete_expense(trip_id: str, expense_id: str) -> None:
    """
    Delete an expense from a trip.

    Raises:
        ValueError: If IDs are invalid.
        LookupError: If the expense does not exist.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(expense_id, "expense_id")

    doc_ref = trip_ref(trip_id).collection(EXPENSES).document(expense_id)
    if not doc_ref.get().exists:
        raise LookupError(f"Expense {expense_id} not found in trip {trip_id}")

    doc_ref.delete()
    logger.info("Deleted expense %s from trip %s", expense_id, trip_id)


def get_expenses(trip_id: str) -> list[Expense]:
    """
    Get all expenses for a trip, newest first.

    Raises:
        ValueError: If trip_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    docs = fetch_subcollection(trip_id, EXPENSES, order_by="date", descending=True)
    return [Expense.from_dict(doc_id, data) for doc_id, data in docs]
