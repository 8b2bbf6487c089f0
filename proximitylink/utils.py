"""Utility functions for the application."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator

from .constants import (
    FIRESTORE_BATCH_LIMIT,
    FIRESTORE_IN_LIMIT,
    UNREAD_BADGE_MAX,
    VIDEO_EXTENSIONS,
)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def chunked(items: list[Any], size: int = FIRESTORE_IN_LIMIT) -> Iterator[list[Any]]:
    """Yield successive slices of at most ``size`` items.

    Firestore ``in`` filters accept a bounded number of values, so id lists
    are queried one slice at a time.
    """
    for i in range(0, len(items), size):
        yield items[i : i + size]


def unique(items: list[Any]) -> list[Any]:
    """Remove duplicates while keeping the first occurrence order."""
    return list(dict.fromkeys(items))


def as_datetime(value: Any) -> datetime | None:
    """Coerce a Firestore timestamp or ISO string to a datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def datetime_display(value: Any) -> str:
    """Format a timestamp as '18 October 2026, 14:05'."""
    dt = as_datetime(value)
    if dt is None:
        return ""
    return f"{dt.day} {dt:%B %Y, %H:%M}"


def is_video(url: str | None) -> bool:
    """Return True if the media URL points at a video file."""
    if not url:
        return False
    return url.lower().split("?", 1)[0].endswith(VIDEO_EXTENSIONS)


def badge_label(count: int | None) -> str:
    """Return the text shown on an unread badge."""
    if not count or count <= 0:
        return ""
    if count > UNREAD_BADGE_MAX:
        return f"{UNREAD_BADGE_MAX}+"
    return str(count)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def timestamp_key(value: Any) -> datetime:
    """Sort key for stored timestamps. Missing values sort first."""
    dt = as_datetime(value)
    if dt is None:
        return _EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def delete_in_batches(db: Any, refs: list[Any], size: int = FIRESTORE_BATCH_LIMIT) -> int:
    """Delete document references with batched writes of at most ``size``."""
    for chunk in chunked(refs, size):
        batch = db.batch()
        for ref in chunk:
            batch.delete(ref)
        batch.commit()
    return len(refs)
