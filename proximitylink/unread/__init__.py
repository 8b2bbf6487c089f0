"""The unread blueprint."""

from flask import Blueprint

bp = Blueprint("unread", __name__, url_prefix="/unread")

from . import routes  # noqa: E402

__all__ = ["routes"]
