from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from proximitylink.constants import AVATARS_AREA, DEFAULT_USER_AVATAR, USERS
from proximitylink.storage import public_url
from proximitylink.utils import unique

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def get_users_by_id(db: Client, user_ids: Iterable[str | None]) -> dict[str, dict[str, Any]]:
    """Fetch user documents in one round trip, keyed by id.

    Ids that do not resolve to a document are left out of the result.
    """
    ids = unique([uid for uid in user_ids if uid])
    if not ids:
        return {}
    refs = [db.collection(USERS).document(uid) for uid in ids]
    users = {}
    for doc in db.get_all(refs):
        if not doc.exists:
            continue
        data = doc.to_dict() or {}
        data["id"] = doc.id
        users[doc.id] = data
    return users


def avatar_for(user: dict[str, Any] | None, default: str = DEFAULT_USER_AVATAR) -> str:
    """Resolve a user's avatar from the avatars area."""
    if not user:
        return default
    return public_url(AVATARS_AREA, user.get("avatar_url"), default)
