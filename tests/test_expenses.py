from decimal import Decimal

import pytest

from tripsettle.errors import UnsupportedSplitError
from tripsettle.expenses import add_expense, delete_expense, get_expenses
from tripsettle.itinerary import add_event, get_events
from tripsettle.members import get_members
from tripsettle.packing import add_packing_item, get_packing_items, packing_progress, toggle_packed
from tripsettle.payments import get_recorded_payments, record_payment, record_transaction
from tripsettle.settlement import compute_settlement_plan
from tripsettle.splitter import compute_financials


def _add(trip_id, **overrides):
    args = {
        "trip_id": trip_id,
        "description": "Dinner",
        "amount": 90,
        "paid_by": "alice",
        "participants": ["alice", "bob", "carol"],
        "date": "2026-05-02",
        "category": "Food",
    }
    args.update(overrides)
    return add_expense(**args)


# =============================================================================
# Expenses
# =============================================================================

def test_add_expense_stores_trip_currency(seeded_trip):
    expense = _add(seeded_trip, notes="  beach shack ")

    assert expense.currency == "INR"
    assert expense.amount == Decimal("90")
    assert expense.notes == "beach shack"
    assert expense.split_type == "equally"

    stored = get_expenses(seeded_trip)
    assert [e.id for e in stored] == [expense.id]
    assert stored[0].participants == ("alice", "bob", "carol")


def test_expenses_listed_newest_first(seeded_trip):
    _add(seeded_trip, description="Day one", date="2026-05-01")
    _add(seeded_trip, description="Day three", date="2026-05-03")
    _add(seeded_trip, description="Day two", date="2026-05-02")

    assert [e.description for e in get_expenses(seeded_trip)] == ["Day three", "Day two", "Day one"]


def test_duplicate_participants_collapsed(seeded_trip):
    expense = _add(seeded_trip, participants=["bob", "bob", "carol"])

    assert expense.participants == ("bob", "carol")


@pytest.mark.parametrize("overrides, message", [
    ({"participants": []}, "participants"),
    ({"amount": 0}, "amount"),
    ({"amount": "0.001"}, "amount"),
    ({"category": "Snacks"}, "category"),
    ({"description": "x" * 101}, "description"),
    ({"notes": "x" * 501}, "notes"),
    ({"paid_by": "dave"}, "not a member"),
    ({"participants": ["alice", "dave"]}, "not a member"),
    ({"date": "2026-13-01"}, "YYYY-MM-DD"),
    ({"split_type": "weighted"}, "split_type"),
])
def test_add_expense_validation(seeded_trip, overrides, message):
    with pytest.raises(ValueError, match=message):
        _add(seeded_trip, **overrides)


@pytest.mark.parametrize("split_type", ["unequally", "percentage"])
def test_declared_but_unsupported_split_types(seeded_trip, split_type):
    with pytest.raises(UnsupportedSplitError):
        _add(seeded_trip, split_type=split_type)


def test_delete_expense_removes_it_from_next_run(seeded_trip):
    keep = _add(seeded_trip, amount=30, participants=["alice", "bob"])
    drop = _add(seeded_trip, amount=90)

    delete_expense(seeded_trip, drop.id)

    members = get_members(seeded_trip)
    financials = {f.member_id: f for f in compute_financials(members, get_expenses(seeded_trip), [])}
    assert [e.id for e in get_expenses(seeded_trip)] == [keep.id]
    assert financials["bob"].net_balance == Decimal("-15")


def test_delete_missing_expense(seeded_trip):
    with pytest.raises(LookupError):
        delete_expense(seeded_trip, "missing")


# =============================================================================
# Recorded payments
# =============================================================================

def test_record_transaction_copies_fields(seeded_trip):
    _add(seeded_trip, amount=100)
    members = get_members(seeded_trip)
    plan = compute_settlement_plan(compute_financials(members, get_expenses(seeded_trip), []))

    payment = record_transaction(seeded_trip, plan[0], recorded_by="bob", notes="UPI")

    assert payment.from_user_id == plan[0].from_user_id
    assert payment.to_user_id == plan[0].to_user_id
    assert payment.currency == "INR"
    assert payment.recorded_by == "bob"
    stored = get_recorded_payments(seeded_trip)
    assert len(stored) == 1
    assert stored[0].date_recorded is not None
    assert abs(stored[0].amount - plan[0].amount) < Decimal("0.000001")


def test_recording_every_transaction_settles_trip(seeded_trip):
    _add(seeded_trip, amount=100)
    _add(seeded_trip, amount="45.50", paid_by="bob", participants=["bob", "carol"])
    members = get_members(seeded_trip)

    plan = compute_settlement_plan(compute_financials(members, get_expenses(seeded_trip), []))
    for transaction in plan:
        record_transaction(seeded_trip, transaction, recorded_by="alice")

    financials = compute_financials(members, get_expenses(seeded_trip), get_recorded_payments(seeded_trip))
    assert compute_settlement_plan(financials) == []


@pytest.mark.parametrize("overrides, message", [
    ({"amount": 0}, "positive"),
    ({"to_user_id": "bob"}, "two different"),
    ({"recorded_by": ""}, "recorded_by"),
    ({"to_user_id": "dave"}, "not a member"),
    ({"from_user_id": "typo-uid"}, "not a member"),
])
def test_record_payment_validation(seeded_trip, overrides, message):
    args = {"from_user_id": "bob", "to_user_id": "alice", "amount": 10, "recorded_by": "bob"}
    args.update(overrides)

    with pytest.raises(ValueError, match=message):
        record_payment(seeded_trip, **args)


def test_record_payment_rejects_bad_trip_currency(seeded_trip, fake_db):
    fake_db.collection("trips").document(seeded_trip).update({"baseCurrency": "RUPEES"})

    with pytest.raises(ValueError, match="base currency"):
        record_payment(seeded_trip, "bob", "alice", 10, recorded_by="bob")

    assert get_recorded_payments(seeded_trip) == []


# =============================================================================
# Itinerary and packing list
# =============================================================================

def test_itinerary_sorted_by_date_then_time(seeded_trip):
    add_event(seeded_trip, "Dinner cruise", "Dining", "2026-05-02", time="19:30")
    add_event(seeded_trip, "Flight in", "Flight", "2026-05-01", time="08:15", location="GOI")
    add_event(seeded_trip, "Snorkelling", "Activity", "2026-05-02", time="09:00")

    events = get_events(seeded_trip)

    assert [e.title for e in events] == ["Flight in", "Snorkelling", "Dinner cruise"]
    assert events[0].location == "GOI"
    assert events[0].to_dict()["type"] == "Flight"


@pytest.mark.parametrize("kwargs, message", [
    ({"event_type": "Party"}, "type"),
    ({"time": "7pm"}, "HH:MM"),
    ({"end_date": "2026-04-30"}, "cannot be before"),
])
def test_add_event_validation(seeded_trip, kwargs, message):
    args = {"title": "Check-in", "event_type": "Accommodation", "date": "2026-05-01"}
    args.update(kwargs)

    with pytest.raises(ValueError, match=message):
        add_event(seeded_trip, **args)


def test_packing_list_toggle_and_progress(seeded_trip):
    passport = add_packing_item(seeded_trip, "Passport", added_by="alice")
    add_packing_item(seeded_trip, "Sunscreen", added_by="bob", assignee="carol")

    toggled = toggle_packed(seeded_trip, passport.id, checked_by="bob")

    assert toggled.packed is True
    assert toggled.last_checked_by == "bob"
    items = get_packing_items(seeded_trip)
    assert [i.name for i in items] == ["Passport", "Sunscreen"]
    assert items[1].assignee == "carol"
    assert packing_progress(items) == (1, 2)

    assert toggle_packed(seeded_trip, passport.id, checked_by="alice").packed is False


def test_toggle_missing_item(seeded_trip):
    with pytest.raises(LookupError):
        toggle_packed(seeded_trip, "missing", checked_by="alice")
