"""Dashboard feed: recent posts from every group the user follows or owns."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from proximitylink import storage
from proximitylink.constants import (
    DEFAULT_GROUP_AVATAR,
    GROUPS,
    GROUPS_AREA,
    POSTS,
    UNKNOWN_GROUP_NAME,
    UNNAMED_USER,
)
from proximitylink.utils import chunked, timestamp_key, unique

from . import membership
from .post_service import get_comment_rows, get_like_stats, resolve_media
from .users import avatar_for, get_users_by_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def get_dashboard_group_ids(db: Client, user_id: str) -> list[str]:
    """Followed groups first, then owned groups, without duplicates."""
    followed = membership.get_followed_group_ids(db, user_id)
    owned = membership.get_owned_group_ids(db, user_id)
    return unique(followed + owned)


def _fetch_groups(db: Client, group_ids: list[str]) -> dict[str, dict[str, Any]]:
    refs = [db.collection(GROUPS).document(gid) for gid in group_ids]
    groups = {}
    for doc in db.get_all(refs):
        if doc.exists:
            groups[doc.id] = doc.to_dict() or {}
    return groups


def get_dashboard_feed(db: Client, user_id: str) -> list[dict[str, Any]]:
    """Build the dashboard posts, newest first.

    A post written by the group owner is shown as coming from the group
    itself, with the group's name and avatar.
    """
    group_ids = get_dashboard_group_ids(db, user_id)
    if not group_ids:
        return []

    posts = []
    for chunk in chunked(group_ids):
        query = db.collection(POSTS).where(
            filter=firestore.FieldFilter("group_id", "in", chunk)
        )
        for doc in query.stream():
            data = doc.to_dict() or {}
            data["id"] = doc.id
            posts.append(data)
    if not posts:
        return []
    posts.sort(key=lambda p: timestamp_key(p.get("created_at")), reverse=True)

    post_ids = [p["id"] for p in posts]
    like_counts, liked = get_like_stats(db, post_ids, user_id)
    comment_rows = get_comment_rows(db, post_ids)
    groups = _fetch_groups(db, unique([p.get("group_id") for p in posts]))
    users = get_users_by_id(db, [p.get("user_id") for p in posts])

    feed = []
    for post in posts:
        pid = post["id"]
        group = groups.get(post.get("group_id"), {})
        author = users.get(post.get("user_id"), {})

        group_name = group.get("name") or UNKNOWN_GROUP_NAME
        group_avatar = storage.public_url(
            GROUPS_AREA, group.get("avatar_url"), DEFAULT_GROUP_AVATAR
        )
        owner_id = group.get("owner_id")
        is_owner_posting = bool(owner_id) and post.get("user_id") == owner_id

        post["media_urls"] = resolve_media(post.get("media_urls"))
        post["likes_count"] = like_counts.get(pid, 0)
        post["liked_by_user"] = pid in liked
        post["comments_count"] = len(comment_rows.get(pid, []))
        post["group_name"] = group_name
        post["group_avatar_url"] = group_avatar
        post["group_owner_id"] = owner_id
        post["post_username"] = author.get("username") or UNNAMED_USER
        post["post_user_avatar_url"] = avatar_for(author)
        post["is_owner_posting"] = is_owner_posting
        post["display_name"] = group_name if is_owner_posting else post["post_username"]
        post["display_avatar"] = (
            group_avatar if is_owner_posting else post["post_user_avatar_url"]
        )
        feed.append(post)
    return feed
