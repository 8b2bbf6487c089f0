"""Data models for the user blueprint."""

from __future__ import annotations

from collections import UserDict
from typing import Any

from flask_login import UserMixin

from proximitylink.constants import UNNAMED_USER


class UserSession(UserDict, UserMixin):
    """A wrapper class for the signed-in user's document."""

    def get_id(self) -> str:
        """Return the user ID."""
        return str(self.get("uid", ""))

    @property
    def display_name(self) -> str:
        """Return the username, or a neutral fallback."""
        name: Any = self.get("username")
        return str(name) if name else UNNAMED_USER
