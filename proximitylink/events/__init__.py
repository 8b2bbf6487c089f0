"""The events blueprint."""

from flask import Blueprint

bp = Blueprint("events", __name__)

from . import routes  # noqa: E402

__all__ = ["routes"]
