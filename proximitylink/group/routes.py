"""Routes for the group blueprint."""

from firebase_admin import firestore
from flask import (
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from proximitylink.auth.decorators import login_required
from proximitylink.core.optimistic import toggle_with_rollback
from proximitylink.error_handlers import wants_json
from proximitylink.errors import AppError, NotFoundError
from proximitylink.post.forms import PostForm
from proximitylink.services import membership
from proximitylink.services.event_service import load_calendar
from proximitylink.services.group_service import GroupService
from proximitylink.services.post_service import PostService
from proximitylink.services.unread import mark_group_as_read

from . import bp
from .forms import GroupForm


@bp.route("/", methods=["GET"])
@login_required
def view_groups():
    """Display every group."""
    db = firestore.client()
    try:
        groups = GroupService.list_groups(db)
    except Exception as e:
        current_app.logger.error(f"Error fetching groups: {e}")
        flash("Could not load groups.", "danger")
        groups = []
    return render_template("group/groups.html", groups=groups)


@bp.route("/mine", methods=["GET"])
@login_required
def my_groups():
    """Display the groups the current user owns."""
    db = firestore.client()
    try:
        groups = GroupService.list_owned_groups(db, g.user["uid"])
    except Exception as e:
        current_app.logger.error(f"Error fetching groups owned by {g.user['uid']}: {e}")
        flash("Could not load your groups.", "danger")
        groups = []
    return render_template("group/my_groups.html", groups=groups)


@bp.route("/search", methods=["GET"])
@login_required
def search():
    """Look up groups by name for the navigation search box."""
    db = firestore.client()
    term = request.args.get("q", "")
    try:
        results = GroupService.search_groups(db, term)
    except Exception as e:
        current_app.logger.error(f"Error searching groups for '{term}': {e}")
        results = []
    return jsonify(results)


@bp.route("/create", methods=["GET", "POST"])
@login_required
def create_group():
    """Create a new group."""
    form = GroupForm()
    if form.validate_on_submit():
        db = firestore.client()
        try:
            group_id = GroupService.create_group(
                db,
                g.user["uid"],
                form.name.data,
                form.description.data,
                form.allow_members_to_post.data,
                form.avatar.data,
                form.cover.data,
            )
            flash("Group created successfully.", "success")
            return redirect(url_for(".view_group", group_id=group_id))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error creating group: {e}")
            flash(f"An unexpected error occurred: {e}", "danger")
    return render_template("group/create_group.html", form=form)


@bp.route("/<string:group_id>", methods=["GET"])
@login_required
def view_group(group_id):
    """Display a group's page: header, feed and calendar."""
    db = firestore.client()
    user_id = g.user["uid"]
    try:
        details = GroupService.get_group_details(db, group_id, user_id)
    except NotFoundError:
        flash("Group not found.", "danger")
        return redirect(url_for(".view_groups"))

    try:
        mark_group_as_read(db, user_id, group_id)
    except Exception as e:
        current_app.logger.error(f"Error marking group {group_id} as read: {e}")

    try:
        posts = PostService.get_group_posts(
            db, group_id, user_id, details["group"].get("owner_id")
        )
    except Exception as e:
        current_app.logger.error(f"Error fetching posts for group {group_id}: {e}")
        flash("Could not load posts.", "danger")
        posts = []

    calendar = load_calendar(db, group_id, request.args.get("month"))

    return render_template(
        "group/group.html",
        posts=posts,
        calendar=calendar,
        post_form=PostForm(),
        **details,
    )


@bp.route("/<string:group_id>/edit", methods=["GET", "POST"])
@login_required
def edit_group(group_id):
    """Edit a group."""
    db = firestore.client()
    try:
        group = GroupService.get_group(db, group_id)
    except NotFoundError:
        flash("Group not found.", "danger")
        return redirect(url_for(".view_groups"))

    if group.get("owner_id") != g.user["uid"]:
        flash("You do not have permission to edit this group.", "danger")
        return redirect(url_for(".view_group", group_id=group_id))

    allowed = group.get("allow_members_to_post")
    form = GroupForm(
        data={
            "name": group.get("name"),
            "description": group.get("description"),
            "allow_members_to_post": True if allowed is None else allowed,
        }
    )
    if form.validate_on_submit():
        try:
            GroupService.update_group(
                db,
                group_id,
                g.user["uid"],
                form.name.data,
                form.description.data,
                form.allow_members_to_post.data,
                form.avatar.data,
                form.cover.data,
            )
            flash("Group updated successfully.", "success")
            return redirect(url_for(".view_group", group_id=group_id))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error updating group {group_id}: {e}")
            flash(f"An unexpected error occurred: {e}", "danger")

    return render_template(
        "group/edit_group.html", form=form, group=group, group_id=group_id
    )


@bp.route("/<string:group_id>/follow", methods=["POST"])
@login_required
def toggle_follow(group_id):
    """Follow or unfollow a group."""
    db = firestore.client()
    user_id = g.user["uid"]
    group = GroupService.get_group(db, group_id)

    if group.get("owner_id") == user_id:
        message = "You own this group."
        if wants_json():
            return jsonify({"ok": False, "error": message}), 400
        flash(message, "warning")
        return redirect(url_for(".view_group", group_id=group_id))

    state = {
        "is_following": membership.is_following(db, group_id, user_id),
        "followers_count": membership.followers_count(db, group_id),
    }

    def write(was_following):
        if was_following:
            membership.unfollow(db, group_id, user_id)
        else:
            membership.follow(db, group_id, user_id)

    ok = toggle_with_rollback(state, "is_following", "followers_count", write)

    if wants_json():
        if not ok:
            return (
                jsonify({"ok": False, "error": "Could not update follow.", **state}),
                500,
            )
        return jsonify({"ok": True, **state})

    if not ok:
        flash("Could not update follow.", "danger")
    elif state["is_following"]:
        flash("You are now following this group.", "success")
    else:
        flash("You have unfollowed this group.", "success")
    return redirect(url_for(".view_group", group_id=group_id))


@bp.route("/<string:group_id>/delete", methods=["POST"])
@login_required
def delete_group(group_id):
    """Delete a group and everything in it."""
    db = firestore.client()
    try:
        GroupService.delete_group(db, group_id, g.user["uid"])
    except NotFoundError:
        flash("Group not found.", "danger")
        return redirect(url_for(".view_groups"))
    except Exception as e:
        current_app.logger.error(f"Error deleting group {group_id}: {e}")
        message = e.message if isinstance(e, AppError) else str(e)
        flash(f"Could not delete group: {message}", "danger")
        return redirect(url_for(".view_group", group_id=group_id))

    flash("Group deleted successfully.", "success")
    return redirect(url_for(".view_groups"))
