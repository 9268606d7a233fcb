from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.core.codes import generate_short_code
from quizduel.db.models.profiles import Profile
from quizduel.db.repo.match_results_repo import MatchResultsRepo
from quizduel.db.repo.profiles_repo import ProfilesRepo
from quizduel.game.auth import get_profile_or_raise, require_user
from quizduel.game.errors import InvalidStateError
from quizduel.game.profiles.types import LeaderboardEntry, ProfileSnapshot, ProfileStats

logger = structlog.get_logger(__name__)

REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_MAX_ATTEMPTS = 10
PROFILE_NAME_MAX_LENGTH = 64
LEADERBOARD_MAX_LIMIT = 100


def _snapshot(profile: Profile) -> ProfileSnapshot:
    return ProfileSnapshot(
        user_id=int(profile.id),
        name=profile.name,
        referral_code=profile.referral_code,
        points=int(profile.points or 0),
        correct_answers_total=int(profile.correct_answers_total or 0),
    )


async def _generate_unique_referral_code(session: AsyncSession) -> str:
    for _ in range(REFERRAL_CODE_MAX_ATTEMPTS):
        candidate = generate_short_code(REFERRAL_CODE_LENGTH)
        if not await ProfilesRepo.referral_code_exists(session, candidate):
            return candidate
    raise RuntimeError("unable to generate unique referral code")


async def create_profile(
    session: AsyncSession,
    *,
    name: str,
    now_utc: datetime,
    is_admin: bool = False,
) -> ProfileSnapshot:
    normalized_name = name.strip()
    if not normalized_name or len(normalized_name) > PROFILE_NAME_MAX_LENGTH:
        raise InvalidStateError("profile name must be 1-64 characters")

    profile = await ProfilesRepo.create(
        session,
        profile=Profile(
            name=normalized_name,
            is_admin=is_admin,
            points=0,
            correct_answers_total=0,
            referral_code=await _generate_unique_referral_code(session),
            referred_by_user_id=None,
            created_at=now_utc,
        ),
    )
    await emit_analytics_event(
        session,
        event_type="profile_created",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=int(profile.id),
        payload={},
    )
    logger.info("profile_created", user_id=int(profile.id))
    return _snapshot(profile)


async def get_profile(session: AsyncSession, *, user_id: int | None) -> ProfileSnapshot:
    return _snapshot(await get_profile_or_raise(session, user_id))


async def get_profile_stats(session: AsyncSession, *, user_id: int | None) -> ProfileStats:
    """Win/draw/loss totals over the user's completed matches, bracket matches included."""
    resolved_user_id = require_user(user_id)
    results = await MatchResultsRepo.list_for_player(session, user_id=resolved_user_id)

    wins = draws = losses = 0
    for result in results:
        if result.is_draw:
            draws += 1
        elif result.winner_id == resolved_user_id:
            wins += 1
        else:
            losses += 1
    return ProfileStats(
        total_games=len(results),
        total_wins=wins,
        total_draws=draws,
        total_losses=losses,
    )


async def list_leaderboard(session: AsyncSession, *, limit: int = 20) -> list[LeaderboardEntry]:
    bounded_limit = min(max(1, int(limit)), LEADERBOARD_MAX_LIMIT)
    profiles = await ProfilesRepo.list_top_by_points(session, limit=bounded_limit)
    return [
        LeaderboardEntry(
            rank=idx,
            user_id=int(profile.id),
            name=profile.name,
            points=int(profile.points or 0),
            correct_answers_total=int(profile.correct_answers_total or 0),
        )
        for idx, profile in enumerate(profiles, start=1)
    ]
