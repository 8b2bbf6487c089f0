"""Service layer for group operations and data orchestration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from proximitylink import storage
from proximitylink.constants import (
    CALENDAR_EVENTS,
    COMMENTS,
    DEFAULT_COVER,
    DEFAULT_GROUP_AVATAR,
    GROUP_MEMBERS,
    GROUP_SEARCH_LIMIT,
    GROUPS,
    GROUPS_AREA,
    LIKES,
    POST_MEDIA_AREA,
    POSTS,
    READ_STATUS,
)
from proximitylink.errors import NotFoundError, PermissionDeniedError, ValidationError
from proximitylink.utils import chunked, delete_in_batches, utcnow

from . import membership

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from proximitylink.group.models import Group


def _has_file(file_storage: Any) -> bool:
    return bool(file_storage and getattr(file_storage, "filename", ""))


def name_key(group: Any) -> str:
    """Sort key for groups: case-insensitive name, missing names first."""
    return (group.get("name") or "").lower()


class GroupService:
    """Service class for group-related operations."""

    @staticmethod
    def shape_group(doc: Any) -> Group:
        """Attach the id and displayable image URLs to a group snapshot."""
        data = doc.to_dict() or {}
        data["id"] = doc.id
        data["avatar"] = storage.public_url(
            GROUPS_AREA, data.get("avatar_url"), DEFAULT_GROUP_AVATAR
        )
        data["cover"] = storage.public_url(
            GROUPS_AREA, data.get("cover_url"), DEFAULT_COVER
        )
        return cast("Group", data)

    @staticmethod
    def get_group(db: Client, group_id: str) -> Group:
        """Fetch a single group or raise NotFoundError."""
        doc = db.collection(GROUPS).document(group_id).get()
        if not doc.exists:
            raise NotFoundError("Group not found.")
        data = doc.to_dict() or {}
        data["id"] = doc.id
        return cast("Group", data)

    @staticmethod
    def list_groups(db: Client) -> list[Group]:
        """Fetch every group ordered by name."""
        groups = [
            GroupService.shape_group(doc)
            for doc in db.collection(GROUPS).stream()
            if doc.exists
        ]
        groups.sort(key=name_key)
        return groups

    @staticmethod
    def list_owned_groups(db: Client, user_id: str) -> list[Group]:
        """Fetch the groups owned by a user ordered by name."""
        query = db.collection(GROUPS).where(
            filter=firestore.FieldFilter("owner_id", "==", user_id)
        )
        groups = [GroupService.shape_group(doc) for doc in query.stream()]
        groups.sort(key=name_key)
        return groups

    @staticmethod
    def search_groups(
        db: Client, term: str, limit: int = GROUP_SEARCH_LIMIT
    ) -> list[dict[str, str]]:
        """Find groups whose name contains ``term``, ignoring case."""
        needle = (term or "").strip().lower()
        if not needle:
            return []

        groups = [
            {"id": doc.id, "name": (doc.to_dict() or {}).get("name") or ""}
            for doc in db.collection(GROUPS).stream()
        ]
        groups.sort(key=name_key)
        return [group for group in groups if needle in group["name"].lower()][:limit]

    @staticmethod
    def can_post(group: dict[str, Any], user_id: str | None, following: bool) -> bool:
        """Decide whether the user may publish in the group."""
        if not user_id:
            return False
        if group.get("owner_id") == user_id:
            return True
        allowed = group.get("allow_members_to_post")
        if allowed is None:
            allowed = True
        return bool(allowed) and following

    @staticmethod
    def get_group_details(db: Client, group_id: str, user_id: str) -> dict[str, Any]:
        """Fetch the header data for a group page."""
        group = GroupService.get_group(db, group_id)

        cover_url = storage.signed_url(
            GROUPS_AREA, group.get("cover_url"), DEFAULT_COVER
        )
        avatar_url = storage.signed_url(
            GROUPS_AREA, group.get("avatar_url"), DEFAULT_GROUP_AVATAR
        )

        following = membership.is_following(db, group_id, user_id)
        is_owner = group.get("owner_id") == user_id

        return {
            "group": group,
            "group_id": group_id,
            "cover_url": cover_url,
            "avatar_url": avatar_url,
            "has_cover": cover_url != DEFAULT_COVER,
            "has_avatar": avatar_url != DEFAULT_GROUP_AVATAR,
            "is_owner": is_owner,
            "is_following": following,
            "followers_count": membership.followers_count(db, group_id),
            "can_post": GroupService.can_post(group, user_id, following),
            "current_user_id": user_id,
        }

    @staticmethod
    def create_group(
        db: Client,
        user_id: str,
        name: str,
        description: str | None = None,
        allow_members_to_post: bool = True,
        avatar_file: Any = None,
        cover_file: Any = None,
    ) -> str:
        """Create a group owned by ``user_id`` and return its id."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")

        group_data = {
            "name": name,
            "description": (description or "").strip() or None,
            "allow_members_to_post": bool(allow_members_to_post),
            "owner_id": user_id,
            "avatar_url": None,
            "cover_url": None,
            "created_at": utcnow(),
        }
        _, new_group_ref = db.collection(GROUPS).add(group_data)

        images = {}
        if _has_file(avatar_file):
            images["avatar_url"] = storage.upload(
                GROUPS_AREA, new_group_ref.id, avatar_file
            )
        if _has_file(cover_file):
            images["cover_url"] = storage.upload(
                GROUPS_AREA, new_group_ref.id, cover_file
            )
        if images:
            new_group_ref.update(images)

        current_app.logger.info(f"Group {new_group_ref.id} created by {user_id}.")
        return new_group_ref.id

    @staticmethod
    def update_group(
        db: Client,
        group_id: str,
        user_id: str,
        name: str,
        description: str | None = None,
        allow_members_to_post: bool = True,
        avatar_file: Any = None,
        cover_file: Any = None,
    ) -> None:
        """Update a group's details. Only the owner may do this.

        A newly uploaded image replaces the old one, which is then removed.
        """
        group = GroupService.get_group(db, group_id)
        if group.get("owner_id") != user_id:
            raise PermissionDeniedError("You do not have permission to edit this group.")

        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")

        update_data: dict[str, Any] = {
            "name": name,
            "description": (description or "").strip() or None,
            "allow_members_to_post": bool(allow_members_to_post),
        }
        replaced = []
        if _has_file(avatar_file):
            update_data["avatar_url"] = storage.upload(GROUPS_AREA, group_id, avatar_file)
            replaced.append(group.get("avatar_url"))
        if _has_file(cover_file):
            update_data["cover_url"] = storage.upload(GROUPS_AREA, group_id, cover_file)
            replaced.append(group.get("cover_url"))

        db.collection(GROUPS).document(group_id).update(update_data)

        stale = [storage.media_path(p, GROUPS_AREA) for p in replaced if p]
        if stale:
            storage.remove(GROUPS_AREA, stale)

    @staticmethod
    def delete_group(db: Client, group_id: str, user_id: str) -> None:
        """Delete a group, its stored media and every row that belongs to it."""
        group = GroupService.get_group(db, group_id)
        if group.get("owner_id") != user_id:
            raise PermissionDeniedError(
                "You do not have permission to delete this group."
            )

        post_docs = list(
            db.collection(POSTS)
            .where(filter=firestore.FieldFilter("group_id", "==", group_id))
            .stream()
        )

        # 1. Post media
        media_paths = []
        for doc in post_docs:
            for url in (doc.to_dict() or {}).get("media_urls") or []:
                path = storage.media_path(url, POST_MEDIA_AREA)
                if path:
                    media_paths.append(path)
        if media_paths:
            removed = storage.remove(POST_MEDIA_AREA, media_paths)
            current_app.logger.info(
                f"Deleted {removed} post media files for group {group_id}."
            )

        # 2. Avatar and cover
        group_images = [
            storage.media_path(group[key], GROUPS_AREA)
            for key in ("avatar_url", "cover_url")
            if group.get(key)
        ]
        if group_images:
            storage.remove(GROUPS_AREA, group_images)

        # 3. Dependent rows
        refs = GroupService._collect_dependent_refs(db, group_id, post_docs)
        delete_in_batches(db, refs)

        # 4. The group itself
        db.collection(GROUPS).document(group_id).delete()
        current_app.logger.info(f"Group {group_id} deleted by {user_id}.")

    @staticmethod
    def _collect_dependent_refs(
        db: Client, group_id: str, post_docs: list[Any]
    ) -> list[Any]:
        """Gather references to every document that hangs off a group."""
        refs = []
        post_ids = [doc.id for doc in post_docs]
        for chunk in chunked(post_ids):
            for collection in (COMMENTS, LIKES):
                query = db.collection(collection).where(
                    filter=firestore.FieldFilter("post_id", "in", chunk)
                )
                refs.extend(doc.reference for doc in query.stream())
        refs.extend(doc.reference for doc in post_docs)

        for collection in (GROUP_MEMBERS, CALENDAR_EVENTS, READ_STATUS):
            query = db.collection(collection).where(
                filter=firestore.FieldFilter("group_id", "==", group_id)
            )
            refs.extend(doc.reference for doc in query.stream())
        return refs
