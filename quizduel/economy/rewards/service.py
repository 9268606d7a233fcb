from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.repo.profiles_repo import ProfilesRepo
from quizduel.economy.rewards.rules import (
    PointsGrant,
    grants_for_match_completed,
    grants_for_referral,
    grants_for_tournament_completed,
)
from quizduel.game.auth import require_user
from quizduel.game.errors import AlreadyJoinedError, InvalidStateError, NotFoundError
from quizduel.game.events import MatchCompleted, TournamentCompleted

logger = structlog.get_logger(__name__)


async def apply_grants(
    session: AsyncSession,
    grants: Sequence[PointsGrant],
    *,
    now_utc: datetime,
) -> int:
    total = 0
    for grant in grants:
        updated = await ProfilesRepo.add_points(session, user_id=grant.user_id, amount=grant.amount)
        if updated == 0:
            logger.warning("points_grant_profile_missing", user_id=grant.user_id, reason=grant.reason)
            continue
        total += grant.amount
        await emit_analytics_event(
            session,
            event_type="points_granted",
            source=EVENT_SOURCE_API,
            happened_at=now_utc,
            user_id=grant.user_id,
            payload={"amount": grant.amount, "reason": grant.reason},
        )
    return total


async def apply_match_completed_rewards(
    session: AsyncSession,
    *,
    event: MatchCompleted,
    now_utc: datetime,
) -> int:
    return await apply_grants(session, grants_for_match_completed(event), now_utc=now_utc)


async def apply_tournament_completed_rewards(
    session: AsyncSession,
    *,
    event: TournamentCompleted,
    now_utc: datetime,
) -> int:
    return await apply_grants(session, grants_for_tournament_completed(event), now_utc=now_utc)


async def redeem_referral_code(
    session: AsyncSession,
    *,
    user_id: int | None,
    referral_code: str,
    now_utc: datetime,
) -> int:
    """Links a new profile to the owner of ``referral_code`` and pays both sides once."""
    resolved_user_id = require_user(user_id)
    signee = await ProfilesRepo.get_by_id_for_update(session, resolved_user_id)
    if signee is None:
        raise NotFoundError
    if signee.referred_by_user_id is not None:
        raise AlreadyJoinedError

    owner = await ProfilesRepo.get_by_referral_code(session, referral_code.strip().upper())
    if owner is None:
        raise NotFoundError
    if int(owner.id) == resolved_user_id:
        raise InvalidStateError

    await ProfilesRepo.set_referred_by(
        session,
        user_id=resolved_user_id,
        referred_by_user_id=int(owner.id),
    )
    total = await apply_grants(
        session,
        grants_for_referral(owner_id=int(owner.id), signee_id=resolved_user_id),
        now_utc=now_utc,
    )
    logger.info("referral_redeemed", user_id=resolved_user_id, owner_id=int(owner.id))
    return total
