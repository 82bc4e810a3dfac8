"""
Analytics Module

This module provides the spending overview shown on a trip's dashboard.

Features:
    - Total trip spending
    - Spending paid by the current user
    - Category-wise expense breakdown, largest first
    - Per-member payer totals

Data Model:
    Input - expenses: list of Expense
    Input - members: list of Member

    Output - dict containing:
        - totalSpending: float
        - yourSpending: float (0.0 without a current user)
        - categoryBreakdown: list of {category, amount}
        - memberSpending: list of {memberId, memberName, amount}

Functions:
    generate_overview: Generate the spending overview for a trip.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from tripsettle.utils import round_money


def generate_overview(expenses: list, members: list, current_user_id: Optional[str] = None) -> dict:
    """
    Generate the spending overview from a trip's expenses.

    Args:
        expenses: List of Expense objects.
        members: List of Member objects, used for names and ordering.
        current_user_id: uid of the viewing user, if any.

    Returns:
        dict: Overview with totals, category breakdown and member spending.

    Notes:
        - All amounts rounded to 2 decimal places
        - Expenses paid by former members count toward the total but get no
          memberSpending entry
    """
    # Accumulate using Decimal for precision
    category_totals = defaultdict(Decimal)
    payer_totals = defaultdict(Decimal)
    total_spent = Decimal("0")

    for expense in expenses:
        category_totals[expense.category] += expense.amount
        payer_totals[expense.paid_by] += expense.amount
        total_spent += expense.amount

    category_breakdown = [
        {"category": category, "amount": round_money(amount)}
        for category, amount in sorted(category_totals.items(), key=lambda item: item[1], reverse=True)
    ]

    member_spending = [
        {
            "memberId": m.id,
            "memberName": m.display_name,
            "amount": round_money(payer_totals.get(m.id, Decimal("0"))),
        }
        for m in members
    ]

    your_spending = payer_totals.get(current_user_id, Decimal("0")) if current_user_id else Decimal("0")

    return {
        "totalSpending": round_money(total_spent),
        "yourSpending": round_money(your_spending),
        "categoryBreakdown": category_breakdown,
        "memberSpending": member_spending,
    }
