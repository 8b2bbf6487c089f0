"""Tests for the storage helpers."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from google.api_core import exceptions as gcloud_exceptions

from proximitylink import create_app, storage
from proximitylink.utils import is_video

DEFAULT = "https://placehold.co/default"


class TestStorageHelpers(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app({"TESTING": True, "SIGNED_URL_EXPIRATION": 600})
        self.app_context = self.app.app_context()
        self.app_context.push()

        patcher = patch("proximitylink.storage.storage")
        self.mock_storage = patcher.start()
        self.addCleanup(patcher.stop)
        self.mock_bucket = self.mock_storage.bucket.return_value
        self.mock_blob = self.mock_bucket.blob.return_value

    def tearDown(self) -> None:
        self.app_context.pop()

    def test_public_url_without_path_uses_default(self) -> None:
        self.assertEqual(storage.public_url("groups", None, DEFAULT), DEFAULT)
        self.assertEqual(storage.public_url("groups", "", DEFAULT), DEFAULT)
        self.mock_storage.bucket.assert_not_called()

    def test_public_url_passes_absolute_urls_through(self) -> None:
        url = "https://example.com/a.jpg"
        self.assertEqual(storage.public_url("groups", url, DEFAULT), url)
        self.mock_storage.bucket.assert_not_called()

    def test_public_url_for_stored_path(self) -> None:
        self.mock_blob.public_url = "https://storage.example.com/groups/g1/a.jpg"

        url = storage.public_url("groups", "g1/a.jpg", DEFAULT)

        self.assertEqual(url, "https://storage.example.com/groups/g1/a.jpg")
        self.mock_bucket.blob.assert_called_once_with("groups/g1/a.jpg")

    def test_signed_url_uses_configured_expiration(self) -> None:
        self.mock_blob.generate_signed_url.return_value = "https://signed.example.com/x"

        url = storage.signed_url("groups", "g1/cover.jpg", DEFAULT)

        self.assertEqual(url, "https://signed.example.com/x")
        kwargs = self.mock_blob.generate_signed_url.call_args.kwargs
        self.assertEqual(kwargs["expiration"].total_seconds(), 600)
        self.assertEqual(kwargs["version"], "v4")

    def test_signed_url_falls_back_when_signing_fails(self) -> None:
        self.mock_blob.generate_signed_url.side_effect = RuntimeError("no key")
        self.assertEqual(storage.signed_url("groups", "g1/cover.jpg", DEFAULT), DEFAULT)

    def test_media_path(self) -> None:
        self.assertEqual(storage.media_path("g1/a.jpg"), "g1/a.jpg")
        self.assertEqual(
            storage.media_path("https://storage.example.com/post_media/g1/a.jpg"),
            "g1/a.jpg",
        )
        self.assertEqual(
            storage.media_path(
                "https://firebasestorage.googleapis.com/v0/b/app/o/post_media%2Fg1%2Fa.jpg"
            ),
            "g1/a.jpg",
        )
        self.assertIsNone(storage.media_path("https://example.com/elsewhere/a.jpg"))
        self.assertEqual(
            storage.media_path("https://storage.example.com/groups/g1/c.jpg", "groups"),
            "g1/c.jpg",
        )

    def test_upload_returns_path_inside_area(self) -> None:
        file_storage = MagicMock()
        file_storage.filename = "my photo.jpg"
        file_storage.mimetype = "image/jpeg"

        path = storage.upload("post_media", "g1", file_storage)

        self.assertTrue(path.startswith("g1/"))
        self.assertTrue(path.endswith("_my_photo.jpg"))
        self.mock_bucket.blob.assert_called_once_with(f"post_media/{path}")
        file_storage.save.assert_called_once()
        self.mock_blob.upload_from_filename.assert_called_once()
        self.assertEqual(
            self.mock_blob.upload_from_filename.call_args.kwargs["content_type"],
            "image/jpeg",
        )

    def test_upload_keeps_extension_of_non_ascii_name(self) -> None:
        file_storage = MagicMock()
        file_storage.filename = "วิดีโอ.MP4"
        file_storage.mimetype = "video/mp4"

        path = storage.upload("post_media", "g1", file_storage)

        self.assertTrue(path.startswith("g1/"))
        self.assertTrue(path.endswith("_upload.mp4"))
        self.assertTrue(is_video(path))

    def test_stored_filename_drops_unknown_extension(self) -> None:
        name = storage.stored_filename("notes.exe")
        self.assertTrue(name.endswith("_notes"))
        self.assertNotIn(".", name)

    def test_remove_skips_missing_blobs(self) -> None:
        self.mock_blob.delete.side_effect = [None, gcloud_exceptions.NotFound("gone")]

        removed = storage.remove("post_media", ["g1/a.jpg", None, "g1/b.jpg"])

        self.assertEqual(removed, 1)
        self.assertEqual(self.mock_blob.delete.call_count, 2)


if __name__ == "__main__":
    unittest.main()
