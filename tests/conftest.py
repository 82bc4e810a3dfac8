import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from firebase_admin import firestore

from tripsettle.config.firebase_config import set_db
from tripsettle.models import Expense, Member, RecordedPayment


# =============================================================================
# In-memory Firestore
# =============================================================================

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


def _matches(data, field, op, value):
    if op == "array_contains":
        return value in (data.get(field) or [])
    return data.get(field) == value


class FakeQuery:
    def __init__(self, store, path, filters=(), order=None, limit=None):
        self._store = store
        self._path = path
        self._filters = list(filters)
        self._order = order
        self._limit = limit

    def where(self, field, op, value):
        assert op in ("==", "array_contains"), f"unsupported filter {op}"
        return FakeQuery(self._store, self._path, self._filters + [(field, op, value)], self._order, self._limit)

    def order_by(self, field, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._store, self._path, self._filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._store, self._path, self._filters, self._order, count)

    def stream(self):
        prefix = self._path + "/"
        docs = [
            FakeSnapshot(path[len(prefix):], data)
            for path, data in self._store.docs.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        ]
        docs = [d for d in docs if all(_matches(d.to_dict(), f, op, v) for f, op, v in self._filters)]
        if self._order:
            field, direction = self._order
            docs.sort(
                key=lambda d: (d.to_dict().get(field) is None, d.to_dict().get(field) or ""),
                reverse=direction == firestore.Query.DESCENDING,
            )
        if self._limit is not None:
            docs = docs[:self._limit]
        return iter(docs)


class FakeCollection(FakeQuery):
    def __init__(self, store, path):
        super().__init__(store, path)

    def document(self, doc_id):
        return FakeDocument(self._store, f"{self._path}/{doc_id}")

    def add(self, data):
        doc_ref = self.document(f"doc{next(self._store.ids)}")
        doc_ref.set(data)
        return datetime.now(timezone.utc), doc_ref


class FakeDocument:
    def __init__(self, store, path):
        self._store = store
        self.path = path
        self.id = path.rsplit("/", 1)[-1]

    def collection(self, name):
        return FakeCollection(self._store, f"{self.path}/{name}")

    def get(self):
        return FakeSnapshot(self.id, self._store.docs.get(self.path))

    def set(self, data):
        self._store.docs[self.path] = {k: self._store.resolve(v, None) for k, v in data.items()}

    def update(self, data):
        if self.path not in self._store.docs:
            raise LookupError(f"no document at {self.path}")
        current = self._store.docs[self.path]
        for key, value in data.items():
            current[key] = self._store.resolve(value, current.get(key))

    def delete(self):
        self._store.docs.pop(self.path, None)


class FakeFirestore:
    """Enough of google.cloud.firestore.Client for the tripsettle modules."""

    def __init__(self):
        self.docs = {}
        self.ids = itertools.count(1)

    def collection(self, name):
        return FakeCollection(self, name)

    def resolve(self, value, current):
        if value is firestore.SERVER_TIMESTAMP:
            return datetime.now(timezone.utc)
        if isinstance(value, firestore.ArrayUnion):
            merged = list(current or [])
            merged.extend(v for v in value.values if v not in merged)
            return merged
        if isinstance(value, firestore.ArrayRemove):
            return [v for v in (current or []) if v not in value.values]
        return value


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    db = FakeFirestore()
    set_db(db)
    yield db
    set_db(None)


@pytest.fixture
def members():
    """Three trip members: Alice, Bob and Carol."""
    return [
        Member(id="alice", display_name="Alice", email="alice@example.com"),
        Member(id="bob", display_name="Bob", email="bob@example.com"),
        Member(id="carol", display_name="Carol", email="carol@example.com"),
    ]


@pytest.fixture
def make_expense():
    counter = itertools.count(1)

    def _make(paid_by, amount, participants, split_type="equally", category="Food"):
        return Expense(
            id=f"e{next(counter)}",
            description="Shared cost",
            amount=Decimal(str(amount)),
            currency="INR",
            paid_by=paid_by,
            date="2026-05-01",
            category=category,
            participants=tuple(participants),
            split_type=split_type,
        )

    return _make


@pytest.fixture
def make_payment():
    counter = itertools.count(1)

    def _make(from_user_id, to_user_id, amount):
        return RecordedPayment(
            id=f"p{next(counter)}",
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=Decimal(str(amount)),
            currency="INR",
        )

    return _make


@pytest.fixture
def seeded_trip(fake_db):
    """
    Trip "trip1" owned by Alice with Alice, Bob and Carol as members, plus a
    user Dave who is not on the trip.
    """
    users = {
        "alice": {"displayName": "Alice", "email": "alice@example.com"},
        "bob": {"displayName": "Bob", "email": "bob@example.com"},
        "carol": {"displayName": "Carol", "email": "carol@example.com"},
        "dave": {"displayName": "Dave", "email": "dave@example.com"},
    }
    for uid, data in users.items():
        fake_db.collection("users").document(uid).set(data)

    fake_db.collection("trips").document("trip1").set({
        "name": "Goa Getaway",
        "destination": "Goa, India",
        "startDate": "2026-05-01",
        "endDate": "2026-05-05",
        "description": "",
        "baseCurrency": "INR",
        "ownerId": "alice",
        "members": ["alice", "bob", "carol"],
    })
    return "trip1"
