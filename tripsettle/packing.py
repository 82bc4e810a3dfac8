"""
Packing List Module

This module manages a trip's shared packing list.

Data Model:
    PackingListItem stored at: trips/{trip_id}/packingItems/{item_id}
    Fields:
        - name: string
        - packed: bool
        - assignee: member uid or None
        - addedBy: uid of the member who added the item
        - lastCheckedBy: uid of the member who last toggled it
        - createdAt: server timestamp

Functions:
    add_packing_item: Add an unpacked item.
    toggle_packed: Flip an item's packed flag.
    get_packing_items: Get all items, oldest first.
    packing_progress: Count packed items.
"""

import logging
from typing import Optional

from firebase_admin import firestore

from tripsettle.firebase_store import PACKING_ITEMS, add_to_subcollection, fetch_subcollection, trip_ref
from tripsettle.models import PackingListItem
from tripsettle.utils import validate_non_empty_string

logger = logging.getLogger(__name__)


def add_packing_item(
    trip_id: str,
    name: str,
    added_by: str,
    assignee: Optional[str] = None
) -> PackingListItem:
    """
    Add an item to the packing list. New items start unpacked.

    Raises:
        ValueError: If input validation fails.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(name, "name")
    validate_non_empty_string(added_by, "added_by")

    data = {
        "name": name.strip(),
        "packed": False,
        "addedBy": added_by,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }
    if assignee:
        data["assignee"] = assignee

    item_id = add_to_subcollection(trip_id, PACKING_ITEMS, data)
    return PackingListItem.from_dict(item_id, {**data, "createdAt": None})


def toggle_packed(trip_id: str, item_id: str, checked_by: str) -> PackingListItem:
    """
    Flip an item's packed flag and remember who did it.

    Raises:
        LookupError: If the item does not exist.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(item_id, "item_id")
    validate_non_empty_string(checked_by, "checked_by")

    doc_ref = trip_ref(trip_id).collection(PACKING_ITEMS).document(item_id)
    doc = doc_ref.get()
    if not doc.exists:
        raise LookupError(f"Packing item {item_id} not found in trip {trip_id}")

    data = doc.to_dict()
    packed = not data.get("packed", False)
    doc_ref.update({"packed": packed, "lastCheckedBy": checked_by})
    logger.debug("Item %s in trip %s packed=%s by %s", item_id, trip_id, packed, checked_by)

    return PackingListItem.from_dict(item_id, {**data, "packed": packed, "lastCheckedBy": checked_by})


def get_packing_items(trip_id: str) -> list[PackingListItem]:
    docs = fetch_subcollection(trip_id, PACKING_ITEMS, order_by="createdAt")
    return [PackingListItem.from_dict(doc_id, data) for doc_id, data in docs]


def packing_progress(items: list[PackingListItem]) -> tuple[int, int]:
    """Return (packed count, total count)."""
    return sum(1 for item in items if item.packed), len(items)
