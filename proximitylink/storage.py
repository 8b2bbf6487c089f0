"""Helpers for Firebase Storage objects referenced by Firestore documents.

Documents store either a storage path (``<group_id>/cover.jpg``) relative to one of
the storage areas, or an absolute ``http(s)`` URL. These helpers turn either
form into something a template can display, and clean up blobs when the
owning document goes away.
"""

from __future__ import annotations

import os
import tempfile
import uuid
from datetime import timedelta
from typing import Any, Iterable
from urllib.parse import unquote, urlparse

from firebase_admin import storage
from flask import current_app
from google.api_core import exceptions as gcloud_exceptions
from werkzeug.utils import secure_filename

from .constants import MEDIA_EXTENSIONS, POST_MEDIA_AREA


def _is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def _blob_name(area: str, path: str) -> str:
    return f"{area}/{path.lstrip('/')}"


def public_url(area: str, path: str | None, default: str) -> str:
    """Resolve a stored path or URL into a public URL."""
    if not path:
        return default
    if _is_url(path):
        return path
    blob = storage.bucket().blob(_blob_name(area, path))
    return blob.public_url or default


def signed_url(
    area: str, path: str | None, default: str, expiration: int | None = None
) -> str:
    """Return a time-limited signed URL for a stored object.

    Falls back to ``default`` when there is no path or signing fails.
    """
    if not path:
        return default
    if _is_url(path):
        return path
    if expiration is None:
        expiration = current_app.config.get("SIGNED_URL_EXPIRATION", 3600)
    try:
        blob = storage.bucket().blob(_blob_name(area, path))
        return blob.generate_signed_url(
            expiration=timedelta(seconds=expiration), version="v4"
        )
    except Exception as e:
        current_app.logger.warning(f"Could not sign URL for {area}/{path}: {e}")
        return default


def media_path(url: str, area: str = POST_MEDIA_AREA) -> str | None:
    """Convert a stored media reference back into a path inside ``area``.

    Plain paths are returned unchanged. For URLs the part after ``/<area>/``
    is returned, or None if the URL does not point into ``area``.
    """
    if not _is_url(url):
        return url
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    segment = f"/{area}/"
    # Public URLs percent-encode the object name, e.g. ".../o/post_media%2Fa.jpg"
    decoded_path = unquote(parsed.path)
    if segment not in decoded_path:
        return None
    path = decoded_path.split(segment, 1)[1]
    return path or None


def stored_filename(filename: str | None) -> str:
    """Return a safe, unique object name that keeps a known media extension.

    The extension is split off first so that names ``secure_filename`` strips
    to nothing (non-ASCII names, for instance) still end in ``.mp4`` or ``.jpg``.
    """
    stem, ext = os.path.splitext(filename or "")
    ext = ext.lower()
    if ext.lstrip(".") not in MEDIA_EXTENSIONS:
        ext = ""
    return f"{uuid.uuid4().hex}_{secure_filename(stem) or 'upload'}{ext}"


def upload(area: str, prefix: str, file_storage: Any) -> str:
    """Upload a werkzeug FileStorage and return its path inside ``area``."""
    filename = stored_filename(file_storage.filename)
    path = f"{prefix}/{filename}"
    blob = storage.bucket().blob(_blob_name(area, path))

    with tempfile.NamedTemporaryFile(suffix=os.path.splitext(filename)[1]) as tmp:
        file_storage.save(tmp.name)
        blob.upload_from_filename(tmp.name, content_type=file_storage.mimetype)

    return path


def remove(area: str, paths: Iterable[str | None]) -> int:
    """Delete blobs from ``area``. Missing blobs are skipped.

    Returns the number of blobs actually deleted.
    """
    bucket = storage.bucket()
    removed = 0
    for path in paths:
        if not path:
            continue
        try:
            bucket.blob(_blob_name(area, path)).delete()
            removed += 1
        except gcloud_exceptions.NotFound:
            current_app.logger.info(f"Blob {area}/{path} already gone.")
    return removed
