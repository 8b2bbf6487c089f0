"""Data models for the post blueprint."""

from __future__ import annotations

from proximitylink.core.types import FirestoreDocument, UserSummary


class Post(FirestoreDocument, total=False):
    """A post document in Firestore."""

    group_id: str
    user_id: str
    content: str
    media_urls: list[str]


class Comment(FirestoreDocument, total=False):
    """A comment on a post."""

    post_id: str
    user_id: str
    content: str

    # UI fields
    user: UserSummary
    avatar: str


class FeedPost(Post, total=False):
    """A post shaped for a group's feed."""

    likes_count: int
    liked_by_user: bool
    comments: list[Comment]
    comments_count: int
    user: UserSummary
    user_avatar: str
    is_owner_post: bool
