"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import current_app, flash, g, render_template

from proximitylink.auth.decorators import login_required
from proximitylink.post.forms import CommentForm
from proximitylink.services.feed import get_dashboard_feed

from . import bp


@bp.route("/dashboard")
@login_required
def dashboard():
    """Show recent posts from the groups the user follows or owns."""
    db = firestore.client()
    try:
        posts = get_dashboard_feed(db, g.user["uid"])
    except Exception as e:
        current_app.logger.error(f"Error building dashboard for {g.user['uid']}: {e}")
        flash("Could not load your feed.", "danger")
        posts = []
    return render_template(
        "user/dashboard.html", posts=posts, comment_form=CommentForm()
    )
