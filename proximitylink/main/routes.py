"""Routes for the main blueprint."""

from __future__ import annotations

from flask import g, redirect, render_template, url_for

from . import bp

FEATURES = [
    {
        "title": "Follow the news",
        "text": "Follow the groups around you and see their latest posts in one feed.",
    },
    {
        "title": "Share",
        "text": "Post updates, photos and videos, and talk them over in the comments.",
    },
    {
        "title": "Create groups",
        "text": "Start a group for your neighbourhood, club or team and plan events together.",
    },
]


@bp.route("/")
def index():
    """Show the landing page, or send signed-in users to their dashboard."""
    if g.user:
        return redirect(url_for("user.dashboard"))
    return render_template("main/index.html", features=FEATURES)


@bp.route("/health")
def health() -> str:
    """Liveness check."""
    return "OK"
