from decimal import Decimal

import pytest

from tripsettle.errors import UnsupportedSplitError
from tripsettle.models import Member
from tripsettle.splitter import compute_financials
from tripsettle.utils import EPSILON


def _by_id(financials):
    return {f.member_id: f for f in financials}


def test_single_expense_split_three_ways(members, make_expense):
    expenses = [make_expense("alice", 90, ["alice", "bob", "carol"])]

    result = _by_id(compute_financials(members, expenses, []))

    assert result["alice"].total_paid == Decimal("90")
    assert result["alice"].total_share == Decimal("30")
    assert result["alice"].net_balance == Decimal("60")
    assert result["bob"].net_balance == Decimal("-30")
    assert result["carol"].net_balance == Decimal("-30")


def test_recorded_payment_adjusts_net_but_not_initial(members, make_expense, make_payment):
    expenses = [make_expense("alice", 90, ["alice", "bob", "carol"])]
    payments = [make_payment("bob", "alice", 30)]

    result = _by_id(compute_financials(members, expenses, payments))

    assert result["bob"].initial_net_balance == Decimal("-30")
    assert result["bob"].net_balance == Decimal("0")
    assert result["alice"].initial_net_balance == Decimal("60")
    assert result["alice"].net_balance == Decimal("30")


def test_payer_not_a_participant(members, make_expense):
    expenses = [make_expense("alice", 50, ["bob", "carol"])]

    result = _by_id(compute_financials(members, expenses, []))

    assert result["alice"].total_share == Decimal("0")
    assert result["alice"].net_balance == Decimal("50")
    assert result["bob"].net_balance == Decimal("-25")


def test_self_expense_nets_to_zero(members, make_expense):
    expenses = [make_expense("alice", 90, ["alice"])]

    result = _by_id(compute_financials(members, expenses, []))

    assert result["alice"].total_paid == Decimal("90")
    assert result["alice"].total_share == Decimal("90")
    assert result["alice"].net_balance == Decimal("0")


def test_every_member_appears_even_without_activity(members):
    result = compute_financials(members, [], [])

    assert [f.member_id for f in result] == ["alice", "bob", "carol"]
    assert all(f.net_balance == 0 for f in result)


def test_sorted_by_net_balance_descending(members, make_expense):
    expenses = [
        make_expense("carol", 60, ["alice", "bob", "carol"]),
        make_expense("bob", 30, ["alice", "bob", "carol"]),
    ]

    result = compute_financials(members, expenses, [])

    assert [f.member_id for f in result] == ["carol", "bob", "alice"]


def test_unknown_member_ids_are_ignored(members, make_expense, make_payment):
    expenses = [
        make_expense("zoe", 40, ["alice", "zoe"]),
        make_expense("alice", 30, ["bob", "zoe", "carol"]),
    ]
    payments = [make_payment("zoe", "bob", 5)]

    result = _by_id(compute_financials(members, expenses, payments))

    assert "zoe" not in result
    # Removed members still count toward the divisor
    assert result["alice"].total_share == Decimal("20")
    assert result["bob"].total_share == Decimal("10")
    assert result["bob"].net_balance == Decimal("-15")


def test_uneven_split_keeps_precision(members, make_expense):
    expenses = [make_expense("alice", 100, ["alice", "bob", "carol"])]

    result = compute_financials(members, expenses, [])

    total = sum(f.net_balance for f in result)
    assert abs(total) < EPSILON
    assert _by_id(result)["bob"].to_dict()["netBalance"] == -33.33


def test_expense_without_participants_counts_as_paid_only(members, make_expense, caplog):
    expenses = [make_expense("alice", 40, [])]

    with caplog.at_level("WARNING"):
        result = _by_id(compute_financials(members, expenses, []))

    assert result["alice"].total_paid == Decimal("40")
    assert result["alice"].total_share == Decimal("0")
    assert "no participants" in caplog.text


@pytest.mark.parametrize("split_type", ["unequally", "percentage"])
def test_non_equal_split_rejected(members, make_expense, split_type):
    expenses = [make_expense("alice", 90, ["alice", "bob"], split_type=split_type)]

    with pytest.raises(UnsupportedSplitError):
        compute_financials(members, expenses, [])


def test_recomputation_is_idempotent(members, make_expense, make_payment):
    expenses = [
        make_expense("alice", 100, ["alice", "bob", "carol"]),
        make_expense("bob", 17.5, ["bob", "carol"]),
    ]
    payments = [make_payment("carol", "alice", 12)]

    first = compute_financials(members, expenses, payments)
    second = compute_financials(members, expenses, payments)

    assert first == second


def test_conservation_of_paid_and_share(members, make_expense):
    expenses = [
        make_expense("alice", 100, ["alice", "bob", "carol"]),
        make_expense("bob", 33.33, ["alice", "carol"]),
        make_expense("carol", 7, ["alice", "bob", "carol"]),
    ]

    result = compute_financials(members, expenses, [])

    total_paid = sum(f.total_paid for f in result)
    total_share = sum(f.total_share for f in result)
    assert abs(total_paid - total_share) < EPSILON


def test_member_without_display_name_uses_short_id():
    result = compute_financials([Member(id="abcdef123456", display_name="")], [], [])

    assert result[0].member_name == "abcdef..."
