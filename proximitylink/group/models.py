"""Data models for the group blueprint."""

from __future__ import annotations

from proximitylink.core.types import FirestoreDocument


class Group(FirestoreDocument, total=False):
    """A group document in Firestore."""

    name: str
    description: str | None
    avatar_url: str | None
    cover_url: str | None
    owner_id: str
    allow_members_to_post: bool

    # UI and calculated fields
    avatar: str
    cover: str
