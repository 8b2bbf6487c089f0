"""Realtime unread counts driven by Firestore snapshot listeners.

One tracker serves one open page. Firestore calls the snapshot callbacks on
its own threads, so count changes are made under a lock and published on a
queue that the request thread drains.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING, Any, Iterable

from firebase_admin import firestore

from proximitylink.constants import POSTS
from proximitylink.utils import badge_label, chunked

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

_live_lock = threading.Lock()
_live: dict[str, set[UnreadTracker]] = {}


def live_trackers(user_id: str) -> list[UnreadTracker]:
    """Return the trackers currently streaming to the user's open pages."""
    with _live_lock:
        return list(_live.get(user_id, ()))


class UnreadTracker:
    """Keep per-group unread counts current while a page is open."""

    def __init__(
        self,
        db: Client,
        user_id: str,
        groups: Iterable[dict[str, Any]],
        counts: dict[str, int] | None = None,
        current_group_id: str | None = None,
    ) -> None:
        self.db = db
        self.user_id = user_id
        self.current_group_id = current_group_id
        self.group_ids = [group["id"] for group in groups]
        counts = counts or {}
        self._counts = {gid: int(counts.get(gid, 0)) for gid in self.group_ids}
        self._lock = threading.Lock()
        self._primed: set[int] = set()
        self._watches: list[Any] = []
        self.events: queue.Queue[dict[str, Any]] = queue.Queue()

    @property
    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def start(self) -> UnreadTracker:
        """Subscribe to new posts in the tracked groups."""
        for index, chunk in enumerate(chunked(self.group_ids)):
            query = self.db.collection(POSTS).where(
                filter=firestore.FieldFilter("group_id", "in", chunk)
            )
            self._watches.append(query.on_snapshot(self._on_snapshot(index)))
        with _live_lock:
            _live.setdefault(self.user_id, set()).add(self)
        logger.info(
            f"Tracking unread posts for {self.user_id} in {len(self.group_ids)} groups."
        )
        return self

    def _on_snapshot(self, index: int):
        def callback(docs, changes, read_time):
            # The first delivery lists every existing post.
            if index not in self._primed:
                self._primed.add(index)
                return
            for change in changes:
                if getattr(change.type, "name", change.type) != "ADDED":
                    continue
                try:
                    self.handle_new_post(change.document.to_dict() or {})
                except Exception as e:
                    logger.error(f"Error handling realtime post: {e}")

        return callback

    def handle_new_post(self, post: dict[str, Any]) -> int | None:
        """Count a newly inserted post. Returns the new count, or None if skipped."""
        group_id = post.get("group_id")
        if not group_id or post.get("user_id") == self.user_id:
            return None
        if group_id == self.current_group_id:
            return None

        with self._lock:
            if group_id not in self._counts:
                return None
            self._counts[group_id] += 1
            count = self._counts[group_id]
        self._publish(group_id, count)
        return count

    def mark_read(self, group_id: str) -> None:
        """Reset a group's count to zero."""
        with self._lock:
            if group_id not in self._counts:
                return
            self._counts[group_id] = 0
        self._publish(group_id, 0)

    def _publish(self, group_id: str, count: int) -> None:
        self.events.put(
            {"group_id": group_id, "count": count, "label": badge_label(count)}
        )

    def stop(self) -> None:
        """Unsubscribe every listener."""
        with _live_lock:
            trackers = _live.get(self.user_id)
            if trackers is not None:
                trackers.discard(self)
                if not trackers:
                    del _live[self.user_id]
        while self._watches:
            watch = self._watches.pop()
            try:
                watch.unsubscribe()
            except Exception as e:
                logger.warning(f"Error closing snapshot listener: {e}")
