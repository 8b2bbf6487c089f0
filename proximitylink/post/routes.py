"""Routes for the post blueprint."""

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
from proximitylink.error_handlers import wants_json
from proximitylink.errors import AppError
from proximitylink.services.post_service import PostService

from . import bp
from .forms import CommentForm, EditPostForm, PostForm


def _back(default):
    return redirect(request.referrer or default)


@bp.route("/group/<string:group_id>/posts", methods=["POST"])
@login_required
def create_post(group_id):
    """Publish a post in a group."""
    form = PostForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, "danger")
        return redirect(url_for("group.view_group", group_id=group_id))

    db = firestore.client()
    try:
        PostService.create_post(
            db, group_id, g.user["uid"], form.content.data, form.media.data
        )
        flash("Post published.", "success")
    except AppError as e:
        flash(e.message, "danger")
    except Exception as e:
        current_app.logger.error(f"Error creating post in group {group_id}: {e}")
        flash("Could not publish post.", "danger")
    return redirect(url_for("group.view_group", group_id=group_id))


@bp.route("/post/<string:post_id>/edit", methods=["GET", "POST"])
@login_required
def edit_post(post_id):
    """Edit the text of one of the user's posts."""
    db = firestore.client()
    post = PostService.get_post(db, post_id)
    if post.get("user_id") != g.user["uid"]:
        flash("You can only edit your own posts.", "danger")
        return redirect(url_for("group.view_group", group_id=post.get("group_id")))

    form = EditPostForm(data=post)
    if form.validate_on_submit():
        try:
            PostService.update_post(db, post_id, g.user["uid"], form.content.data)
            flash("Post updated.", "success")
            return redirect(url_for("group.view_group", group_id=post.get("group_id")))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error updating post {post_id}: {e}")
            flash("Could not update post.", "danger")

    return render_template("post/edit_post.html", form=form, post=post)


@bp.route("/post/<string:post_id>/delete", methods=["POST"])
@login_required
def delete_post(post_id):
    """Delete a post."""
    db = firestore.client()
    try:
        group_id = PostService.delete_post(db, post_id, g.user["uid"])
    except AppError as e:
        flash(e.message, "danger")
        return _back(url_for("user.dashboard"))
    except Exception as e:
        current_app.logger.error(f"Error deleting post {post_id}: {e}")
        flash("Could not delete post.", "danger")
        return _back(url_for("user.dashboard"))

    flash("Post deleted.", "success")
    if group_id:
        return redirect(url_for("group.view_group", group_id=group_id))
    return redirect(url_for("user.dashboard"))


@bp.route("/post/<string:post_id>/like", methods=["POST"])
@login_required
def toggle_like(post_id):
    """Like or unlike a post."""
    db = firestore.client()
    state = PostService.toggle_like(db, post_id, g.user["uid"])
    ok = state.pop("ok")

    if wants_json():
        if not ok:
            return jsonify({"ok": False, "error": "Could not update like.", **state}), 500
        return jsonify({"ok": True, **state})

    if not ok:
        flash("Could not update like.", "danger")
    return _back(url_for("user.dashboard"))


@bp.route("/post/<string:post_id>/comments", methods=["GET", "POST"])
@login_required
def comments(post_id):
    """List a post's comments, or add one."""
    db = firestore.client()

    if request.method == "POST":
        payload = request.get_json(silent=True) if request.is_json else request.form
        content = (payload or {}).get("content", "")
        try:
            comment, count = PostService.add_comment(db, post_id, g.user["uid"], content)
        except AppError:
            raise
        except Exception as e:
            current_app.logger.error(f"Error adding comment to post {post_id}: {e}")
            if wants_json():
                return jsonify({"ok": False, "error": "Could not add comment."}), 500
            flash("Could not add comment.", "danger")
            return _back(url_for(".comments", post_id=post_id))

        if wants_json():
            return (
                jsonify({"ok": True, "comment": comment, "comments_count": count}),
                201,
            )
        flash("Comment added.", "success")
        return _back(url_for(".comments", post_id=post_id))

    post = PostService.get_post(db, post_id)
    post_comments = PostService.list_comments(db, post_id)
    if wants_json():
        return jsonify({"ok": True, "comments": post_comments})
    return render_template(
        "post/comments.html", post=post, comments=post_comments, form=CommentForm()
    )
