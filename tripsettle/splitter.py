"""
Splitter Module

This module folds a trip's expenses and recorded payments into one signed
net balance per member (the balance aggregator).

Features:
    - Equal splitting among expense participants
    - Recorded payments applied on top of the expense balances
    - Decimal-safe arithmetic, no rounding until serialization
    - Unknown member IDs ignored (e.g. members removed from the trip)

Data Model:
    Input - members: list of Member
    Input - expenses: list of Expense
        - paid_by, amount, participants, split_type
    Input - recorded_payments: list of RecordedPayment
        - from_user_id, to_user_id, amount

    Output - list of MemberFinancials, one per member:
        - total_paid: sum of expenses paid by this member
        - total_share: sum of shares owed by this member
        - initial_net_balance: total_paid - total_share
        - net_balance: initial_net_balance adjusted by recorded payments
            - Positive = member is owed money
            - Negative = member owes money

Functions:
    compute_financials: Calculate per-member financial balances.
"""

import logging
from decimal import Decimal

from tripsettle.errors import UnsupportedSplitError
from tripsettle.models import MemberFinancials, SPLIT_EQUALLY

logger = logging.getLogger(__name__)


def _member_name(member) -> str:
    return member.display_name or f"{member.id[:6]}..."


def compute_financials(members: list, expenses: list, recorded_payments: list) -> list[MemberFinancials]:
    """
    Calculate per-member financial balances from expenses and payments.

    For each expense:
        1. The payer's total_paid increases by the expense amount
        2. Each participant's total_share increases by (amount / num_participants)

    For each recorded payment, in input order:
        - The payer's net_balance increases by the payment amount
        - The receiver's net_balance decreases by the payment amount

    Args:
        members: List of Member objects on the trip.
        expenses: List of Expense objects.
        recorded_payments: List of RecordedPayment objects.

    Returns:
        list[MemberFinancials]: One entry per member, including members with
        no activity, sorted by net_balance descending (creditors first).
        Ties keep the order of ``members``.

    Raises:
        UnsupportedSplitError: If an expense is not split equally.

    Notes:
        - Payer does NOT need to be a participant
        - The divisor is the full participant count, even if some
          participants are no longer members
        - An expense with no participants counts as paid but unshared and is
          logged; the planner will then reject the unbalanced totals
        - Pure function: inputs are not modified
    """
    # Accumulators keyed by member id, in member order
    paid = {m.id: Decimal("0") for m in members}
    share = {m.id: Decimal("0") for m in members}

    for expense in expenses:
        if expense.split_type != SPLIT_EQUALLY:
            raise UnsupportedSplitError(
                f"expense {expense.id} uses split type '{expense.split_type}'; only equal splits are supported"
            )

        if expense.paid_by in paid:
            paid[expense.paid_by] += expense.amount
        else:
            logger.debug("Expense %s paid by non-member %s", expense.id, expense.paid_by)

        if not expense.participants:
            logger.warning("Expense %s has no participants; amount left unshared", expense.id)
            continue

        share_per_participant = expense.amount / Decimal(len(expense.participants))
        for participant_id in expense.participants:
            if participant_id in share:
                share[participant_id] += share_per_participant
            else:
                logger.debug("Expense %s shared with non-member %s", expense.id, participant_id)

    initial_net = {member_id: paid[member_id] - share[member_id] for member_id in paid}
    adjusted_net = dict(initial_net)

    for payment in recorded_payments:
        if payment.from_user_id in adjusted_net:
            adjusted_net[payment.from_user_id] += payment.amount
        if payment.to_user_id in adjusted_net:
            adjusted_net[payment.to_user_id] -= payment.amount

    financials = [
        MemberFinancials(
            member_id=m.id,
            member_name=_member_name(m),
            total_paid=paid[m.id],
            total_share=share[m.id],
            initial_net_balance=initial_net[m.id],
            net_balance=adjusted_net[m.id],
        )
        for m in members
    ]

    # Display order only; the planner sorts its own partitions
    return sorted(financials, key=lambda f: f.net_balance, reverse=True)
