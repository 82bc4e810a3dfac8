"""
Settlement Module

This module turns member balances into a plan of transfers that brings every
balance to zero.

Features:
    - Convert net balances into settlement transactions
    - Minimize number of transactions using greedy algorithm
    - Tolerance-based zero test (EPSILON) for division residue
    - Conservation check on the incoming balances
    - Simulate a plan against balances

Data Model:
    Input - financials: list of MemberFinancials
        - net_balance: Decimal (positive = owed money, negative = owes money)

    Output - list of SettlementTransaction:
        - from_user_id / from_name: debtor who pays
        - to_user_id / to_name: creditor who receives
        - amount: Decimal (unrounded)

Functions:
    compute_settlement_plan: Convert balances into minimal settlement transactions.
    check_conservation: Verify balances net to zero.
    apply_plan: Return balances after executing a plan.
"""

import logging
from dataclasses import replace
from decimal import Decimal

from tripsettle.errors import SettlementInvariantError
from tripsettle.models import MemberFinancials, SettlementTransaction
from tripsettle.utils import EPSILON

logger = logging.getLogger(__name__)


def _tolerance(count: int) -> Decimal:
    return EPSILON * max(1, count)


def check_conservation(financials: list[MemberFinancials]) -> Decimal:
    """
    Verify that net balances sum to zero within EPSILON per member.

    Every expense's paid amount equals the sum of its shares and every
    recorded payment nets to zero across its two parties, so a non-zero
    total means the balances were built incorrectly.

    Args:
        financials: Output of compute_financials().

    Returns:
        Decimal: The (near-zero) total of all net balances.

    Raises:
        SettlementInvariantError: If the total exceeds the tolerance.
    """
    total = sum((f.net_balance for f in financials), Decimal("0"))
    if abs(total) > _tolerance(len(financials)):
        raise SettlementInvariantError(f"net balances sum to {total}, expected 0")
    return total


def compute_settlement_plan(
    financials: list[MemberFinancials],
    strict: bool = True
) -> list[SettlementTransaction]:
    """
    Convert net balances into minimal settlement transactions.

    Uses a greedy algorithm:
        1. Separate members into debtors (net_balance < -EPSILON) and
           creditors (net_balance > EPSILON)
        2. Sort debtors by most negative balance (largest debt first)
        3. Sort creditors by most positive balance (largest credit first)
        4. Iteratively match the current debtor with the current creditor:
           - Settle the minimum of their absolute balances
           - Move both balances toward zero
           - Advance past whichever side is now settled (possibly both)

    Args:
        financials: List of MemberFinancials; order only matters for ties.
        strict: Raise on an imbalance. With strict=False the imbalance is
            logged and the sweep settles whatever it can. Departed members
            leave such an imbalance, since their shares are dropped while
            the divisor still counts them.

    Returns:
        list[SettlementTransaction]: Transfers in the order the sweep found
        them. At most len(financials) - 1 entries.

    Raises:
        SettlementInvariantError: If strict and the balances do not net to
            zero, or the sweep leaves an unsettled balance behind.

    Notes:
        - Sorts are stable, so equal balances keep their input order
        - Does NOT modify input financials
        - Does NOT write to Firestore
    """
    try:
        check_conservation(financials)
    except SettlementInvariantError as e:
        if strict:
            raise
        logger.warning("Settling unbalanced trip: %s", e)

    # Working copies: [member_id, member_name, balance]
    debtors = [
        [f.member_id, f.member_name, f.net_balance]
        for f in financials if f.net_balance < -EPSILON
    ]
    creditors = [
        [f.member_id, f.member_name, f.net_balance]
        for f in financials if f.net_balance > EPSILON
    ]

    debtors.sort(key=lambda x: x[2])
    creditors.sort(key=lambda x: x[2], reverse=True)

    transactions = []
    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        transfer_amount = min(-debtor[2], creditor[2])

        if transfer_amount > EPSILON:
            transactions.append(SettlementTransaction(
                from_user_id=debtor[0],
                from_name=debtor[1],
                to_user_id=creditor[0],
                to_name=creditor[1],
                amount=transfer_amount,
            ))
            debtor[2] += transfer_amount
            creditor[2] -= transfer_amount

        # A balance of exactly EPSILON is already excluded from the
        # partitions above, so it counts as settled here too
        if abs(debtor[2]) <= EPSILON:
            debtor_idx += 1
        if abs(creditor[2]) <= EPSILON:
            creditor_idx += 1

    leftover = debtors[debtor_idx:] + creditors[creditor_idx:]
    residue = sum((abs(entry[2]) for entry in leftover), Decimal("0"))
    if residue > _tolerance(len(financials)):
        message = f"settlement left {residue} unresolved across {[entry[0] for entry in leftover]}"
        if strict:
            raise SettlementInvariantError(message)
        logger.warning(message)

    logger.debug("Settlement plan: %d transactions for %d members", len(transactions), len(financials))
    return transactions


def apply_plan(financials: list[MemberFinancials], plan: list) -> list[MemberFinancials]:
    """
    Simulate every transfer in ``plan`` as a recorded payment.

    Transfers between unknown member IDs are ignored, as in
    compute_financials().

    Args:
        financials: Balances to start from.
        plan: Objects with from_user_id, to_user_id and amount.

    Returns:
        list[MemberFinancials]: New objects with updated net_balance, in the
        same order as ``financials``.
    """
    net = {f.member_id: f.net_balance for f in financials}
    for transfer in plan:
        if transfer.from_user_id in net:
            net[transfer.from_user_id] += transfer.amount
        if transfer.to_user_id in net:
            net[transfer.to_user_id] -= transfer.amount
    return [replace(f, net_balance=net[f.member_id]) for f in financials]
