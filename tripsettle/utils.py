"""
Utilities Module

This module provides shared helpers for the TripSettle application.

Features:
    - Decimal-safe money conversion and rounding
    - Tolerance-based zero test for balances
    - Input validation shared by the Firestore-backed modules
    - Currency formatting
    - Per-member share breakdown (transparency of cost calculations)

Functions:
    to_decimal: Convert a stored amount to Decimal without float drift.
    round_money: Round a Decimal to 2 places and convert to float.
    is_zero: Check whether a balance is within EPSILON of zero.
    validate_date: Validate a YYYY-MM-DD date string.
    validate_non_empty_string: Validate a non-blank string.
    validate_currency: Validate a 3-letter currency code.
    validate_amount: Check that a value is a positive monetary amount.
    format_currency: Format amount with currency symbol.
    explain_member_share: Get detailed share breakdown for one member.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


# Balances within half a cent of zero are treated as settled
EPSILON = Decimal("0.005")

CENT = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def to_decimal(value) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through ``str()`` so 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Args:
        value: int, float, str or Decimal.

    Returns:
        Decimal: The converted amount.

    Raises:
        ValueError: If the value is not a number.
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValueError(f"not a valid amount: {value!r}")


def round_money(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def is_zero(value: Decimal) -> bool:
    """Return True if ``value`` is within EPSILON of zero."""
    return abs(value) < EPSILON


def validate_date(date_str: str, field_name: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate.
        field_name: Name of the field for error messages.

    Returns:
        bool: True if valid.

    Raises:
        ValueError: If date format is invalid.
    """
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be in YYYY-MM-DD format, got: {date_str}")


def validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def validate_currency(code: str) -> bool:
    """
    Validate a 3-letter ISO currency code such as "INR".

    Raises:
        ValueError: If the code is not three letters.
    """
    if not isinstance(code, str) or len(code) != 3 or not code.isalpha():
        raise ValueError(f"currency must be a 3-letter code, got: {code!r}")
    return True


def validate_amount(value) -> bool:
    """
    Validate if the input is a valid monetary amount.

    Args:
        value: Value to validate.

    Returns:
        bool: True if valid positive number.
    """
    try:
        return to_decimal(value) > 0
    except ValueError:
        return False


def format_currency(amount, currency: str = "INR") -> str:
    """
    Format a monetary amount with the appropriate currency symbol.

    Unknown currencies fall back to the code followed by a space.

    Returns:
        str: Formatted string like "₹1,234.56" or "CHF 10.00".
    """
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{float(amount):,.2f}"


def explain_member_share(member_id: str, members: list, expenses: list) -> dict:
    """
    Generate detailed explanation of how a member's share was calculated.

    For each expense the member participates in, shows the expense details
    and the member's share (amount / number of participants). Participants
    who are no longer trip members still count toward the divisor, matching
    compute_financials().

    Args:
        member_id: ID of the member to explain.
        members: List of Member objects on the trip.
        expenses: List of Expense objects.

    Returns:
        dict: Explanation containing:
            - memberId: string
            - contributions: list of dicts with expense breakdown
            - totalShare: float (sum of all contributions)
            - totalPaid: float

    Raises:
        LookupError: If the member is not on the trip.
    """
    if member_id not in {m.id for m in members}:
        raise LookupError(f"Member {member_id} not found")

    contributions = []
    total_share = Decimal("0")
    total_paid = Decimal("0")

    for expense in expenses:
        if expense.paid_by == member_id:
            total_paid += expense.amount

        if member_id not in expense.participants:
            continue

        share = expense.amount / Decimal(len(expense.participants))
        total_share += share
        contributions.append({
            "expenseId": expense.id,
            "description": expense.description,
            "category": expense.category,
            "date": expense.date,
            "amount": round_money(expense.amount),
            "participantCount": len(expense.participants),
            "share": round_money(share),
        })

    return {
        "memberId": member_id,
        "contributions": contributions,
        "totalShare": round_money(total_share),
        "totalPaid": round_money(total_paid),
    }
