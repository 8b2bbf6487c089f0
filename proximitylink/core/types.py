"""Core data types for the proximitylink application."""

from typing import Any, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str
    created_at: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    updated_at: Any


class UserSummary(TypedDict, total=False):
    """The slice of a user document shown next to posts and comments."""

    id: str
    username: str | None
    avatar_url: str | None
    created_at: Any
