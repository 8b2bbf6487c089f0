"""Unread post counts per followed group."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from firebase_admin import firestore
from flask import current_app

from proximitylink.constants import POSTS, READ_STATUS
from proximitylink.utils import as_datetime, chunked, timestamp_key, utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def read_status_id(user_id: str, group_id: str) -> str:
    """Return the id of the read status document for a (user, group) pair."""
    return f"{user_id}_{group_id}"


def get_read_statuses(
    db: Client, user_id: str, group_ids: list[str]
) -> dict[str, datetime | None]:
    """Fetch ``last_read_at`` for each of the given groups."""
    statuses: dict[str, datetime | None] = {}
    for chunk in chunked(group_ids):
        query = (
            db.collection(READ_STATUS)
            .where(filter=firestore.FieldFilter("user_id", "==", user_id))
            .where(filter=firestore.FieldFilter("group_id", "in", chunk))
        )
        for doc in query.stream():
            data = doc.to_dict() or {}
            if data.get("group_id"):
                statuses[data["group_id"]] = as_datetime(data.get("last_read_at"))
    return statuses


def count_unread_posts(
    db: Client, group_id: str, user_id: str, last_read_at: Any = None
) -> int:
    """Count the group's posts by other users created after ``last_read_at``.

    Without a read status every post by someone else counts.
    """
    query = db.collection(POSTS).where(
        filter=firestore.FieldFilter("group_id", "==", group_id)
    )
    since = timestamp_key(last_read_at) if last_read_at else None
    count = 0
    for doc in query.stream():
        data = doc.to_dict() or {}
        if data.get("user_id") == user_id:
            continue
        if since is not None and timestamp_key(data.get("created_at")) <= since:
            continue
        count += 1
    return count


def get_unread_counts(
    db: Client,
    user_id: str,
    groups: Iterable[dict[str, Any]],
    current_group_id: str | None = None,
) -> dict[str, int]:
    """Compute the badge count for every group in ``groups``.

    The open group and groups the user owns always show 0. A failure for one
    group is logged and that group shows 0.
    """
    groups = list(groups)
    try:
        statuses = get_read_statuses(db, user_id, [g["id"] for g in groups])
    except Exception as e:
        current_app.logger.error(f"Error fetching read statuses for {user_id}: {e}")
        statuses = {}

    counts = {}
    for group in groups:
        group_id = group["id"]
        if group_id == current_group_id or group.get("owner_id") == user_id:
            counts[group_id] = 0
            continue
        try:
            counts[group_id] = count_unread_posts(
                db, group_id, user_id, statuses.get(group_id)
            )
        except Exception as e:
            current_app.logger.error(
                f"Error counting unread posts in group {group_id}: {e}"
            )
            counts[group_id] = 0
    return counts


def mark_group_as_read(
    db: Client, user_id: str, group_id: str, now: datetime | None = None
) -> datetime:
    """Record that the user has seen the group up to ``now``."""
    now = now or utcnow()
    db.collection(READ_STATUS).document(read_status_id(user_id, group_id)).set(
        {"user_id": user_id, "group_id": group_id, "last_read_at": now}
    )
    return now
