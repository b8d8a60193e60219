from typing import List

from app.core.database import get_db
from app.core.errors import NotFound
from app.domains.auth import repository as users_repository
from app.domains.auth.schemas import UserOut
from app.domains.compatibility import compute_score, shared_interests
from app.domains.connections import repository as connections_repository
from app.shared.utils.logger import get_logger

from .schemas import ProfileUpdate, PublicProfile

logger = get_logger(__name__)


def _public(user, viewer=None) -> PublicProfile:
    profile = PublicProfile.model_validate(user)
    if viewer is not None and viewer.id != user.id:
        profile.compatibility_score = compute_score(viewer, user)
        profile.shared_interests = shared_interests(viewer, user)
    return profile


async def discover(viewer, limit: int = 20, offset: int = 0) -> List[PublicProfile]:
    """Other users ranked by compatibility, skipping open connections"""
    async with get_db() as db:
        partners = await connections_repository.open_partner_ids(db, viewer.id)
    candidates = await users_repository.list_users_except([viewer.id, *partners])

    ranked = sorted(
        candidates,
        key=lambda u: (-compute_score(viewer, u), u.id),
    )
    return [_public(u, viewer) for u in ranked[offset:offset + limit]]


async def get_profile(viewer, user_id: str) -> PublicProfile:
    user = await users_repository.get_user_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return _public(user, viewer)


async def update_profile(user, update: ProfileUpdate) -> UserOut:
    fields = update.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in fields:
        fields["name"] = fields["name"].strip()
    updated = await users_repository.update_user(user.id, fields)
    logger.info(f"Profile updated: {user.id} ({', '.join(sorted(fields)) or 'no changes'})")
    return UserOut.model_validate(updated)
