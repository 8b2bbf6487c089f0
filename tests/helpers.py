"""Shared set-up for tests that drive the app against a fake Firestore."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from proximitylink import create_app
from tests.conftest import attach_batch, patch_mockfirestore

MOCK_USER_ID = "user1"
MOCK_USER_DATA = {"username": "Ana"}
MOCK_BLOB_URL = "https://storage.example.com/blob.jpg"

BASE_TIME = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def ts(minutes: int = 0) -> datetime:
    """Return a fixed UTC timestamp shifted by ``minutes``."""
    return BASE_TIME + timedelta(minutes=minutes)


class FirestoreTestCase(unittest.TestCase):
    """Runs service code against MockFirestore inside an app context."""

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()
        self.batches = attach_batch(self.db)

        self.mock_storage = MagicMock()
        self.mock_bucket = self.mock_storage.bucket.return_value
        self.mock_bucket.blob.return_value.public_url = MOCK_BLOB_URL

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_client": patch(
                "firebase_admin.firestore.client", return_value=self.db
            ),
            "storage": patch("proximitylink.storage.storage", new=self.mock_storage),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

    def tearDown(self) -> None:
        self.app_context.pop()

    # Fixture builders

    def add_user(self, user_id: str, **fields: Any) -> None:
        data = {"username": user_id.capitalize()}
        data.update(fields)
        self.db.collection("users").document(user_id).set(data)

    def add_group(self, group_id: str, owner_id: str = "owner1", **fields: Any) -> None:
        data = {
            "name": group_id.capitalize(),
            "description": None,
            "owner_id": owner_id,
            "allow_members_to_post": True,
            "avatar_url": None,
            "cover_url": None,
            "created_at": ts(),
        }
        data.update(fields)
        self.db.collection("groups").document(group_id).set(data)

    def add_follow(self, group_id: str, user_id: str, minutes: int = 0) -> None:
        self.db.collection("group_members").document(f"{group_id}_{user_id}").set(
            {"group_id": group_id, "user_id": user_id, "created_at": ts(minutes)}
        )

    def add_post(
        self, post_id: str, group_id: str, user_id: str, minutes: int = 0, **fields: Any
    ) -> None:
        data = {
            "group_id": group_id,
            "user_id": user_id,
            "content": f"Post {post_id}",
            "media_urls": [],
            "created_at": ts(minutes),
            "updated_at": ts(minutes),
        }
        data.update(fields)
        self.db.collection("posts").document(post_id).set(data)

    def add_like(self, post_id: str, user_id: str) -> None:
        self.db.collection("likes").document(f"{post_id}_{user_id}").set(
            {"post_id": post_id, "user_id": user_id, "created_at": ts()}
        )

    def add_comment(
        self, comment_id: str, post_id: str, user_id: str, minutes: int = 0
    ) -> None:
        self.db.collection("comments").document(comment_id).set(
            {
                "post_id": post_id,
                "user_id": user_id,
                "content": f"Comment {comment_id}",
                "created_at": ts(minutes),
            }
        )

    def add_event(
        self, event_id: str, group_id: str, start: datetime, end: datetime, **fields: Any
    ) -> None:
        data = {
            "group_id": group_id,
            "user_id": "owner1",
            "title": f"Event {event_id}",
            "description": None,
            "start_time": start,
            "end_time": end,
        }
        data.update(fields)
        self.db.collection("calendar_events").document(event_id).set(data)

    def exists(self, collection: str, doc_id: str) -> bool:
        return doc_id in self.db._data.get(collection, {}) and bool(
            self.db._data[collection][doc_id]
        )

    def login(self, user_id: str = MOCK_USER_ID, **fields: Any) -> None:
        """Store the user in Firestore and put their id in the session."""
        data = dict(MOCK_USER_DATA)
        data.update(fields)
        self.db.collection("users").document(user_id).set(data)
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id
