"""
Members Module

This module handles trip membership.

Features:
    - Invite an existing user to a trip by email
    - Remove a member (owner only)
    - Resolve member uids to user profiles

Data Model:
    Trip membership: trips/{trip_id}.members (list of uids)
    User profile stored at: users/{uid}
    Fields:
        - displayName: string
        - email: string (stored lowercase)
        - photoURL: string or None

Functions:
    get_member: Resolve one uid to a Member.
    get_members: Get all members of a trip.
    invite_member: Add a user to a trip by email.
    remove_member: Remove a member from a trip.
"""

import logging

from firebase_admin import firestore

from tripsettle.firebase_store import USERS, require_db, trip_ref
from tripsettle.models import Member
from tripsettle.trips import get_trip
from tripsettle.utils import validate_non_empty_string

logger = logging.getLogger(__name__)


def get_member(uid: str) -> Member:
    """
    Resolve a uid to a Member.

    A uid without a user document resolves to an "Unknown User" placeholder
    so the member still shows up in balances.
    """
    doc = require_db().collection(USERS).document(uid).get()
    if not doc.exists:
        logger.debug("No user document for member %s", uid)
        return Member.unknown(uid)
    return Member.from_dict(doc.id, doc.to_dict())


def get_members(trip_id: str) -> list[Member]:
    """
    Get all members of a trip, in the order they joined.

    Raises:
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    trip = get_trip(trip_id)
    return [get_member(uid) for uid in trip.members]


def invite_member(trip_id: str, email: str) -> tuple[Member, bool]:
    """
    Add an existing user to a trip, looked up by email.

    Emails are stored lowercase in the users collection, so the lookup
    lowercases its input.

    Args:
        trip_id: The ID of the trip.
        email: Email address of the user to add.

    Returns:
        tuple[Member, bool]: The member and whether they were already on the
        trip (in which case nothing is written).

    Raises:
        ValueError: If email is blank.
        LookupError: If the trip or the user does not exist.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(email, "email")
    trip = get_trip(trip_id)

    lowercased_email = email.strip().lower()
    docs = list(
        require_db().collection(USERS)
        .where("email", "==", lowercased_email)
        .limit(1)
        .stream()
    )
    if not docs:
        raise LookupError(f"No user found with email {lowercased_email}")

    member = Member.from_dict(docs[0].id, docs[0].to_dict())
    if member.id in trip.members:
        return member, True

    trip_ref(trip_id).update({"members": firestore.ArrayUnion([member.id])})
    logger.info("Added member %s to trip %s", member.id, trip_id)
    return member, False


def remove_member(trip_id: str, member_id: str, acting_user_id: str) -> None:
    """
    Remove a member from a trip.

    Removal only edits the membership list: the member's expenses and
    payments stay in storage and are simply ignored by later balance runs.

    Raises:
        PermissionError: If the acting user is not the trip owner.
        ValueError: If the owner tries to remove themself, the member is the
            last one, or the member is not on the trip.
        LookupError: If the trip does not exist.
        RuntimeError: If Firestore is not available.
    """
    validate_non_empty_string(member_id, "member_id")
    trip = get_trip(trip_id)

    if acting_user_id != trip.owner_id:
        raise PermissionError("Only the trip owner can remove members")
    if member_id == trip.owner_id:
        raise ValueError("The trip owner cannot remove themself")
    if member_id not in trip.members:
        raise ValueError(f"{member_id} is not a member of trip {trip_id}")
    if len(trip.members) <= 1:
        raise ValueError("A trip must have at least one member")

    trip_ref(trip_id).update({"members": firestore.ArrayRemove([member_id])})
    logger.info("Removed member %s from trip %s", member_id, trip_id)
