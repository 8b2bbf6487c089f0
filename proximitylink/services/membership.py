"""Follow relationships between users and groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from proximitylink.constants import (
    DEFAULT_GROUP_AVATAR,
    GROUP_MEMBERS,
    GROUPS,
    GROUPS_AREA,
)
from proximitylink.storage import public_url
from proximitylink.utils import timestamp_key, utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def member_doc_id(group_id: str, user_id: str) -> str:
    """Return the id of the follow document for a (group, user) pair."""
    return f"{group_id}_{user_id}"


def is_following(db: Client, group_id: str, user_id: str | None) -> bool:
    """Check whether the user follows the group."""
    if not user_id:
        return False
    doc = db.collection(GROUP_MEMBERS).document(member_doc_id(group_id, user_id)).get()
    return doc.exists


def followers_count(db: Client, group_id: str) -> int:
    """Count the users following a group."""
    query = db.collection(GROUP_MEMBERS).where(
        filter=firestore.FieldFilter("group_id", "==", group_id)
    )
    return len(list(query.stream()))


def follow(db: Client, group_id: str, user_id: str) -> None:
    """Insert the follow row for the user."""
    db.collection(GROUP_MEMBERS).document(member_doc_id(group_id, user_id)).set(
        {"group_id": group_id, "user_id": user_id, "created_at": utcnow()}
    )


def unfollow(db: Client, group_id: str, user_id: str) -> None:
    """Delete the follow row for the user."""
    db.collection(GROUP_MEMBERS).document(member_doc_id(group_id, user_id)).delete()


def get_followed_group_ids(db: Client, user_id: str) -> list[str]:
    """Return the ids of the groups a user follows, oldest follow first."""
    query = db.collection(GROUP_MEMBERS).where(
        filter=firestore.FieldFilter("user_id", "==", user_id)
    )
    rows = [doc.to_dict() or {} for doc in query.stream()]
    rows.sort(key=lambda row: timestamp_key(row.get("created_at")))
    return [row["group_id"] for row in rows if row.get("group_id")]


def get_owned_group_ids(db: Client, user_id: str) -> list[str]:
    """Return the ids of the groups a user owns."""
    query = db.collection(GROUPS).where(
        filter=firestore.FieldFilter("owner_id", "==", user_id)
    )
    return [doc.id for doc in query.stream()]


def get_followed_groups(db: Client, user_id: str) -> list[dict[str, Any]]:
    """Fetch the groups a user follows, in follow order.

    Groups that no longer exist are skipped.
    """
    group_ids = get_followed_group_ids(db, user_id)
    if not group_ids:
        return []

    refs = [db.collection(GROUPS).document(gid) for gid in group_ids]
    docs = {doc.id: doc for doc in db.get_all(refs) if doc.exists}

    groups = []
    for gid in group_ids:
        doc = docs.get(gid)
        if doc is None:
            continue
        data = doc.to_dict() or {}
        data["id"] = doc.id
        data["avatar"] = public_url(
            GROUPS_AREA, data.get("avatar_url"), DEFAULT_GROUP_AVATAR
        )
        groups.append(data)
    return groups
