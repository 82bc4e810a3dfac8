"""
Data models for TripSettle.

Every model is an immutable value object. Stored models convert to and from
the Firestore document shape (camelCase keys, amounts as floats) with
``to_dict()`` / ``from_dict()``; derived models are never persisted and only
expose ``to_dict()`` for API responses.

Stored:
    Trip             trips/{trip_id}
    Member           users/{uid}
    Expense          trips/{trip_id}/expenses/{expense_id}
    RecordedPayment  trips/{trip_id}/recordedPayments/{payment_id}
    ItineraryEvent   trips/{trip_id}/itineraryEvents/{event_id}
    PackingListItem  trips/{trip_id}/packingItems/{item_id}

Derived:
    MemberFinancials, SettlementTransaction
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from tripsettle.utils import round_money, to_decimal


SPLIT_EQUALLY = "equally"
# Declared by the data model; rejected by add_expense and compute_financials
SPLIT_TYPES = (SPLIT_EQUALLY, "unequally", "percentage")


def _timestamp_to_str(value: Any) -> Optional[str]:
    """Firestore returns datetimes for timestamp fields; API responses want strings."""
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class Member:
    """A user linked to a trip."""
    id: str
    display_name: str
    photo_url: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, uid: str, data: dict) -> "Member":
        return cls(
            id=uid,
            display_name=data.get("displayName") or "Unknown User",
            photo_url=data.get("photoURL"),
            email=data.get("email") or None,
        )

    @classmethod
    def unknown(cls, uid: str) -> "Member":
        """Placeholder for a uid on the trip with no user document."""
        return cls(id=uid, display_name=f"Unknown User ({uid[:6]}...)")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "photoURL": self.photo_url,
            "email": self.email,
        }


@dataclass(frozen=True)
class Trip:
    id: str
    name: str
    destination: str
    start_date: str
    end_date: str
    owner_id: str
    members: tuple[str, ...] = ()
    description: str = ""
    base_currency: str = "INR"
    created_at: Any = None

    @classmethod
    def from_dict(cls, trip_id: str, data: dict) -> "Trip":
        return cls(
            id=trip_id,
            name=data.get("name", ""),
            destination=data.get("destination", ""),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            owner_id=data.get("ownerId"),
            members=tuple(data.get("members", [])),
            description=data.get("description", ""),
            base_currency=data.get("baseCurrency") or "INR",
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "destination": self.destination,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "ownerId": self.owner_id,
            "members": list(self.members),
            "description": self.description,
            "baseCurrency": self.base_currency,
            "createdAt": _timestamp_to_str(self.created_at),
        }


@dataclass(frozen=True)
class Expense:
    """
    A shared expense, split equally across ``participants``.

    Attributes:
        id (str): Firestore document ID.
        description (str): What the money was spent on.
        amount (Decimal): Positive amount in the trip's base currency.
        currency (str): ISO currency code.
        paid_by (str): Member ID of the payer. Need not be a participant.
        date (str): Date of the expense (YYYY-MM-DD).
        category (str): One of ``expenses.EXPENSE_CATEGORIES``.
        participants (tuple[str, ...]): Member IDs sharing the cost.
        split_type (str): Always "equally" for accepted expenses.
        notes (str | None): Optional free text.
    """
    id: str
    description: str
    amount: Decimal
    currency: str
    paid_by: str
    date: str
    category: str
    participants: tuple[str, ...]
    split_type: str = SPLIT_EQUALLY
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, expense_id: str, data: dict) -> "Expense":
        return cls(
            id=expense_id,
            description=data.get("description", ""),
            amount=to_decimal(data.get("amount", 0)),
            currency=data.get("currency", ""),
            paid_by=data.get("paidBy"),
            date=data.get("date"),
            category=data.get("category", ""),
            participants=tuple(data.get("participants", [])),
            split_type=data.get("splitType", SPLIT_EQUALLY),
            notes=data.get("notes") or None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": round_money(self.amount),
            "currency": self.currency,
            "paidBy": self.paid_by,
            "date": self.date,
            "category": self.category,
            "participants": list(self.participants),
            "splitType": self.split_type,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class RecordedPayment:
    """A real-world transfer that already happened between two members."""
    id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    currency: str = ""
    recorded_by: Optional[str] = None
    date_recorded: Any = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, payment_id: str, data: dict) -> "RecordedPayment":
        return cls(
            id=payment_id,
            from_user_id=data.get("fromUserId"),
            to_user_id=data.get("toUserId"),
            amount=to_decimal(data.get("amount", 0)),
            currency=data.get("currency", ""),
            recorded_by=data.get("recordedBy"),
            date_recorded=data.get("dateRecorded"),
            notes=data.get("notes") or None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fromUserId": self.from_user_id,
            "toUserId": self.to_user_id,
            "amount": round_money(self.amount),
            "currency": self.currency,
            "recordedBy": self.recorded_by,
            "dateRecorded": _timestamp_to_str(self.date_recorded),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class MemberFinancials:
    """Per-member totals derived from expenses and recorded payments."""
    member_id: str
    member_name: str
    total_paid: Decimal
    total_share: Decimal
    initial_net_balance: Decimal
    net_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "memberId": self.member_id,
            "memberName": self.member_name,
            "totalPaid": round_money(self.total_paid),
            "totalShare": round_money(self.total_share),
            "initialNetBalance": round_money(self.initial_net_balance),
            "netBalance": round_money(self.net_balance),
        }


@dataclass(frozen=True)
class SettlementTransaction:
    """A single suggested transfer from a debtor to a creditor."""
    from_user_id: str
    from_name: str
    to_user_id: str
    to_name: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "fromUserId": self.from_user_id,
            "from": self.from_name,
            "toUserId": self.to_user_id,
            "to": self.to_name,
            "amount": round_money(self.amount),
        }


@dataclass(frozen=True)
class ItineraryEvent:
    id: str
    title: str
    type: str
    date: str
    time: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: Any = None

    @classmethod
    def from_dict(cls, event_id: str, data: dict) -> "ItineraryEvent":
        return cls(
            id=event_id,
            title=data.get("title", ""),
            type=data.get("type", ""),
            date=data.get("date"),
            time=data.get("time"),
            end_date=data.get("endDate"),
            location=data.get("location"),
            notes=data.get("notes"),
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "date": self.date,
            "time": self.time,
            "endDate": self.end_date,
            "location": self.location,
            "notes": self.notes,
            "createdAt": _timestamp_to_str(self.created_at),
        }


@dataclass(frozen=True)
class PackingListItem:
    id: str
    name: str
    packed: bool = False
    assignee: Optional[str] = None
    added_by: Optional[str] = None
    last_checked_by: Optional[str] = None
    created_at: Any = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, item_id: str, data: dict) -> "PackingListItem":
        return cls(
            id=item_id,
            name=data.get("name", ""),
            packed=bool(data.get("packed", False)),
            assignee=data.get("assignee"),
            added_by=data.get("addedBy"),
            last_checked_by=data.get("lastCheckedBy"),
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "packed": self.packed,
            "assignee": self.assignee,
            "addedBy": self.added_by,
            "lastCheckedBy": self.last_checked_by,
            "createdAt": _timestamp_to_str(self.created_at),
        }
