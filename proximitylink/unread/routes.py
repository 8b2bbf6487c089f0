"""Routes for the unread blueprint."""

import json
import queue

from firebase_admin import firestore
from flask import (
    Response,
    current_app,
    g,
    jsonify,
    request,
)

from proximitylink.auth.decorators import login_required
from proximitylink.services import membership
from proximitylink.services.unread import get_unread_counts, mark_group_as_read
from proximitylink.utils import badge_label

from . import bp
from .tracker import UnreadTracker, live_trackers


def _payload(counts):
    return {
        "counts": counts,
        "labels": {gid: badge_label(count) for gid, count in counts.items()},
    }


@bp.route("/counts", methods=["GET"])
@login_required
def counts():
    """Return the unread count of every followed group."""
    db = firestore.client()
    user_id = g.user["uid"]
    try:
        groups = membership.get_followed_groups(db, user_id)
    except Exception as e:
        current_app.logger.error(f"Error fetching followed groups for {user_id}: {e}")
        return jsonify({"ok": False, "error": "Could not load unread counts."}), 500

    unread = get_unread_counts(db, user_id, groups, request.args.get("current"))
    return jsonify({"ok": True, **_payload(unread)})


@bp.route("/<string:group_id>/read", methods=["POST"])
@login_required
def mark_read(group_id):
    """Mark a group as read for the current user."""
    db = firestore.client()
    try:
        last_read_at = mark_group_as_read(db, g.user["uid"], group_id)
    except Exception as e:
        current_app.logger.error(f"Error marking group {group_id} as read: {e}")
        return jsonify({"ok": False, "error": "Could not mark group as read."}), 500
    for tracker in live_trackers(g.user["uid"]):
        tracker.mark_read(group_id)
    return jsonify(
        {
            "ok": True,
            "group_id": group_id,
            "count": 0,
            "last_read_at": last_read_at.isoformat(),
        }
    )


@bp.route("/stream", methods=["GET"])
@login_required
def stream():
    """Push unread count changes to the browser as Server-Sent Events."""
    db = firestore.client()
    user_id = g.user["uid"]
    current_group_id = request.args.get("current")

    try:
        groups = membership.get_followed_groups(db, user_id)
    except Exception as e:
        current_app.logger.error(f"Error fetching followed groups for {user_id}: {e}")
        return jsonify({"ok": False, "error": "Could not start unread stream."}), 500

    unread = get_unread_counts(db, user_id, groups, current_group_id)
    tracker = UnreadTracker(db, user_id, groups, unread, current_group_id).start()
    keepalive = current_app.config.get("UNREAD_STREAM_KEEPALIVE", 15)

    def generate():
        try:
            yield f"event: counts\ndata: {json.dumps(_payload(unread))}\n\n"
            while True:
                try:
                    event = tracker.events.get(timeout=keepalive)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(event)}\n\n"
        finally:
            tracker.stop()

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
