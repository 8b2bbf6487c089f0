"""Context processors for the Flask application."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

from firebase_admin import firestore
from flask import current_app, g, request

from .services import membership
from .services.unread import get_unread_counts
from .services.users import avatar_for

VERSION_THRESHOLD = 10
VERSION_SHORT_LENGTH = 7


def inject_global_context() -> dict[str, Any]:
    """Injects global context variables into templates."""
    # APP_VERSION config first, then the commit hash of the deploy.
    version = (
        current_app.config.get("APP_VERSION")
        or os.environ.get("GITHUB_SHA")
        or os.environ.get("RENDER_GIT_COMMIT")
        or "dev"
    )

    # If it's a long git hash, shorten it
    if len(version) > VERSION_THRESHOLD and version != "dev":
        version = version[:VERSION_SHORT_LENGTH]

    return {
        "current_year": datetime.now().year,
        "version": version,
    }


def inject_firebase_api_key() -> dict[str, Any]:
    """Injects the Firebase API key into the template context."""
    return dict(firebase_api_key=current_app.config.get("FIREBASE_API_KEY"))


def inject_current_user_avatar() -> dict[str, Any]:
    """Injects the signed-in user's avatar URL."""
    user = getattr(g, "user", None)
    if not user:
        return dict(current_user_avatar=None)
    return dict(current_user_avatar=avatar_for(user))


def _open_group_id() -> str | None:
    if request.endpoint == "group.view_group" and request.view_args:
        return request.view_args.get("group_id")
    return None


def inject_followed_groups() -> dict[str, Any]:
    """Injects the followed groups, with unread counts, for the navigation strip."""
    user = getattr(g, "user", None)
    if not user:
        return dict(followed_groups=[], current_group_id=None)

    current_group_id = _open_group_id()
    try:
        db = firestore.client()
        groups = membership.get_followed_groups(db, user["uid"])
        counts = get_unread_counts(db, user["uid"], groups, current_group_id)
        for group in groups:
            group["unread_count"] = counts.get(group["id"], 0)
    except Exception as e:
        current_app.logger.error(f"Error fetching followed groups: {e}")
        groups = []
    return dict(followed_groups=groups, current_group_id=current_group_id)
