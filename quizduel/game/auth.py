from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.profiles import Profile
from quizduel.db.repo.profiles_repo import ProfilesRepo
from quizduel.game.errors import NotFoundError, UnauthenticatedError, UnauthorizedError


def require_user(user_id: int | None) -> int:
    if user_id is None:
        raise UnauthenticatedError
    return int(user_id)


async def ensure_creator_or_admin(
    session: AsyncSession,
    *,
    user_id: int | None,
    creator_id: int | None,
) -> Profile:
    resolved_user_id = require_user(user_id)
    profile = await ProfilesRepo.get_by_id(session, resolved_user_id)
    if profile is None:
        raise NotFoundError
    if creator_id is not None and int(creator_id) == resolved_user_id:
        return profile
    if profile.is_admin:
        return profile
    raise UnauthorizedError


async def get_profile_or_raise(session: AsyncSession, user_id: int | None) -> Profile:
    profile = await ProfilesRepo.get_by_id(session, require_user(user_id))
    if profile is None:
        raise NotFoundError
    return profile
