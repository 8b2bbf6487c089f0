"""Service layer for posts, likes and comments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from proximitylink import storage
from proximitylink.constants import (
    AVATARS_AREA,
    COMMENTS,
    DEFAULT_COMMENT_AVATAR,
    DEFAULT_MEDIA,
    GROUPS,
    LIKES,
    POST_MEDIA_AREA,
    POSTS,
    UNKNOWN_USER,
)
from proximitylink.core.optimistic import toggle_with_rollback
from proximitylink.errors import NotFoundError, PermissionDeniedError, ValidationError
from proximitylink.utils import chunked, delete_in_batches, timestamp_key, utcnow

from . import membership
from .group_service import GroupService
from .users import avatar_for, get_users_by_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from proximitylink.post.models import Comment, FeedPost, Post


def like_doc_id(post_id: str, user_id: str) -> str:
    """Return the id of the like document for a (post, user) pair."""
    return f"{post_id}_{user_id}"


def resolve_media(urls: list[str] | None) -> list[str]:
    """Turn stored media paths into displayable URLs."""
    return [
        storage.public_url(POST_MEDIA_AREA, url, DEFAULT_MEDIA) for url in urls or []
    ]


def get_like_stats(
    db: Client, post_ids: list[str], user_id: str | None
) -> tuple[dict[str, int], set[str]]:
    """Count likes per post and find the posts liked by ``user_id``."""
    counts: dict[str, int] = {pid: 0 for pid in post_ids}
    liked: set[str] = set()
    for chunk in chunked(post_ids):
        query = db.collection(LIKES).where(
            filter=firestore.FieldFilter("post_id", "in", chunk)
        )
        for doc in query.stream():
            data = doc.to_dict() or {}
            pid = data.get("post_id")
            if pid not in counts:
                continue
            counts[pid] += 1
            if user_id and data.get("user_id") == user_id:
                liked.add(pid)
    return counts, liked


def get_comment_rows(db: Client, post_ids: list[str]) -> dict[str, list[dict[str, Any]]]:
    """Fetch raw comments for many posts, oldest first within each post."""
    rows: dict[str, list[dict[str, Any]]] = {pid: [] for pid in post_ids}
    for chunk in chunked(post_ids):
        query = db.collection(COMMENTS).where(
            filter=firestore.FieldFilter("post_id", "in", chunk)
        )
        for doc in query.stream():
            data = doc.to_dict() or {}
            data["id"] = doc.id
            if data.get("post_id") in rows:
                rows[data["post_id"]].append(data)
    for comments in rows.values():
        comments.sort(key=lambda c: timestamp_key(c.get("created_at")))
    return rows


def shape_comment(data: dict[str, Any], users: dict[str, dict[str, Any]]) -> Comment:
    """Attach the author to a comment.

    Authors without a user document fall back to an id-only summary.
    """
    uid = data.get("user_id")
    author = users.get(uid) if uid else None
    data["user"] = {
        "id": uid,
        "username": author.get("username") if author else None,
        "avatar_url": author.get("avatar_url") if author else None,
    }
    data["avatar"] = storage.public_url(
        AVATARS_AREA, data["user"]["avatar_url"], DEFAULT_COMMENT_AVATAR
    )
    return cast("Comment", data)


class PostService:
    """Service class for post-related operations."""

    @staticmethod
    def get_post(db: Client, post_id: str) -> Post:
        """Fetch a single post or raise NotFoundError."""
        doc = db.collection(POSTS).document(post_id).get()
        if not doc.exists:
            raise NotFoundError("Post not found.")
        data = doc.to_dict() or {}
        data["id"] = doc.id
        return cast("Post", data)

    @staticmethod
    def get_group_posts(
        db: Client, group_id: str, user_id: str | None, owner_id: str | None = None
    ) -> list[FeedPost]:
        """Fetch a group's feed, newest first, with likes, comments and authors."""
        query = db.collection(POSTS).where(
            filter=firestore.FieldFilter("group_id", "==", group_id)
        )
        posts = []
        for doc in query.stream():
            data = doc.to_dict() or {}
            data["id"] = doc.id
            posts.append(data)
        posts.sort(key=lambda p: timestamp_key(p.get("created_at")), reverse=True)
        if not posts:
            return []

        post_ids = [p["id"] for p in posts]
        like_counts, liked = get_like_stats(db, post_ids, user_id)
        comment_rows = get_comment_rows(db, post_ids)

        author_ids = [p.get("user_id") for p in posts]
        for rows in comment_rows.values():
            author_ids.extend(c.get("user_id") for c in rows)
        users = get_users_by_id(db, author_ids)

        feed = []
        for post in posts:
            pid = post["id"]
            uid = post.get("user_id")
            author = users.get(uid) or {}
            comments = [shape_comment(c, users) for c in comment_rows.get(pid, [])]
            post["media_urls"] = resolve_media(post.get("media_urls"))
            post["likes_count"] = like_counts.get(pid, 0)
            post["liked_by_user"] = pid in liked
            post["comments"] = comments
            post["comments_count"] = len(comments)
            post["user"] = {
                "id": uid,
                "username": author.get("username") or UNKNOWN_USER,
                "avatar_url": author.get("avatar_url"),
                "created_at": author.get("created_at"),
            }
            post["user_avatar"] = avatar_for(author)
            post["is_owner_post"] = bool(owner_id) and uid == owner_id
            feed.append(cast("FeedPost", post))
        return feed

    @staticmethod
    def create_post(
        db: Client,
        group_id: str,
        user_id: str,
        content: str | None,
        media_files: list[Any] | None = None,
    ) -> str:
        """Publish a post in a group and return its id."""
        group = GroupService.get_group(db, group_id)
        following = membership.is_following(db, group_id, user_id)
        if not GroupService.can_post(group, user_id, following):
            raise PermissionDeniedError("You cannot post in this group.")

        content = (content or "").strip()
        files = [f for f in media_files or [] if f and getattr(f, "filename", "")]
        if not content and not files:
            raise ValidationError("Write something or attach a photo or video.")

        media_urls = [storage.upload(POST_MEDIA_AREA, group_id, f) for f in files]
        now = utcnow()
        _, post_ref = db.collection(POSTS).add(
            {
                "group_id": group_id,
                "user_id": user_id,
                "content": content,
                "media_urls": media_urls,
                "created_at": now,
                "updated_at": now,
            }
        )
        current_app.logger.info(f"Post {post_ref.id} created in group {group_id}.")
        return post_ref.id

    @staticmethod
    def update_post(db: Client, post_id: str, user_id: str, content: str | None) -> Post:
        """Change the text of a post. Only its author may do this."""
        post = PostService.get_post(db, post_id)
        if post.get("user_id") != user_id:
            raise PermissionDeniedError("You can only edit your own posts.")

        content = (content or "").strip()
        if not content:
            raise ValidationError("Post content cannot be empty.")

        update_data = {"content": content, "updated_at": utcnow()}
        db.collection(POSTS).document(post_id).update(update_data)
        post.update(update_data)  # type: ignore[typeddict-item]
        return post

    @staticmethod
    def delete_post(db: Client, post_id: str, user_id: str) -> str:
        """Delete a post with its media, likes and comments.

        The author and the group owner may delete a post. Returns the id of
        the group the post belonged to.
        """
        post = PostService.get_post(db, post_id)
        group_id = post.get("group_id", "")

        owner_id = None
        if group_id:
            group_doc = db.collection(GROUPS).document(group_id).get()
            if group_doc.exists:
                owner_id = (group_doc.to_dict() or {}).get("owner_id")

        if user_id not in (post.get("user_id"), owner_id):
            raise PermissionDeniedError("You do not have permission to delete this post.")

        paths = [storage.media_path(url) for url in post.get("media_urls") or []]
        paths = [p for p in paths if p]
        if paths:
            storage.remove(POST_MEDIA_AREA, paths)

        refs = []
        for collection in (LIKES, COMMENTS):
            query = db.collection(collection).where(
                filter=firestore.FieldFilter("post_id", "==", post_id)
            )
            refs.extend(doc.reference for doc in query.stream())
        refs.append(db.collection(POSTS).document(post_id))
        delete_in_batches(db, refs)

        current_app.logger.info(f"Post {post_id} deleted by {user_id}.")
        return group_id

    @staticmethod
    def toggle_like(db: Client, post_id: str, user_id: str) -> dict[str, Any]:
        """Like or unlike a post for the user.

        Returns the resulting ``liked_by_user`` and ``likes_count`` along with
        ``ok``, which is False when the write failed and the state was rolled
        back.
        """
        PostService.get_post(db, post_id)
        like_ref = db.collection(LIKES).document(like_doc_id(post_id, user_id))
        counts, liked = get_like_stats(db, [post_id], user_id)
        state: dict[str, Any] = {
            "liked_by_user": post_id in liked,
            "likes_count": counts.get(post_id, 0),
        }

        def write(was_liked: bool) -> None:
            if was_liked:
                like_ref.delete()
            else:
                like_ref.set(
                    {"post_id": post_id, "user_id": user_id, "created_at": utcnow()}
                )

        state["ok"] = toggle_with_rollback(state, "liked_by_user", "likes_count", write)
        return state

    @staticmethod
    def list_comments(db: Client, post_id: str) -> list[Comment]:
        """Fetch a post's comments, oldest first, with their authors."""
        rows = get_comment_rows(db, [post_id]).get(post_id, [])
        users = get_users_by_id(db, [c.get("user_id") for c in rows])
        return [shape_comment(c, users) for c in rows]

    @staticmethod
    def add_comment(
        db: Client, post_id: str, user_id: str, content: str | None
    ) -> tuple[Comment, int]:
        """Add a comment and return it with the post's new comment count."""
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty.")
        PostService.get_post(db, post_id)

        data = {
            "post_id": post_id,
            "user_id": user_id,
            "content": content,
            "created_at": utcnow(),
        }
        _, comment_ref = db.collection(COMMENTS).add(data)
        data["id"] = comment_ref.id

        comment = shape_comment(data, get_users_by_id(db, [user_id]))
        count = len(get_comment_rows(db, [post_id]).get(post_id, []))
        return comment, count
