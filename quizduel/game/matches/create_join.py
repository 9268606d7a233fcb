from __future__ import annotations

import random
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.models.matches import Match
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.economy.quota.service import ensure_quota_available
from quizduel.economy.quota.types import QuotaKind
from quizduel.game.auth import get_profile_or_raise
from quizduel.game.errors import (
    AlreadyJoinedError,
    ExpiredError,
    FullError,
    InvalidStateError,
    NotFoundError,
)
from quizduel.game.matches.internal import (
    build_match_snapshot,
    generate_join_code,
    insert_match,
    resolve_match_expiry,
)
from quizduel.game.matches.state import MATCH_CAPACITY, MatchStatus, ensure_match_transition
from quizduel.game.matches.types import MatchJoinResult, MatchSnapshot
from quizduel.game.questions.bank import select_question_ids

QUICK_PLAY_CANDIDATES = 5

logger = structlog.get_logger(__name__)


async def create_match(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    is_private: bool = False,
    category_id: int | None = None,
    rng: random.Random | None = None,
) -> MatchSnapshot:
    profile = await get_profile_or_raise(session, user_id)
    await ensure_quota_available(session, user_id=profile.id, kind=QuotaKind.MATCH, now_utc=now_utc)
    question_ids = await select_question_ids(session, category_id=category_id, rng=rng)
    join_code = await generate_join_code(session) if is_private else None

    match = await insert_match(
        session,
        question_ids=question_ids,
        player_ids=[profile.id],
        now_utc=now_utc,
        creator_id=profile.id,
        category_id=category_id,
        is_private=is_private,
        join_code=join_code,
    )
    await emit_analytics_event(
        session,
        event_type="match_created",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=profile.id,
        payload={
            "match_id": str(match.id),
            "is_private": is_private,
            "category_id": category_id,
        },
    )
    logger.info("match_created", match_id=str(match.id), user_id=profile.id, is_private=is_private)
    return build_match_snapshot(match)


async def _lock_match_for_join(
    session: AsyncSession,
    *,
    match_id: UUID | None,
    join_code: str | None,
) -> Match:
    match: Match | None = None
    if match_id is not None:
        match = await MatchesRepo.get_by_id_for_update(session, match_id)
    elif join_code:
        match = await MatchesRepo.get_by_join_code_for_update(session, join_code.strip().upper())
    if match is None:
        raise NotFoundError
    return match


async def join_match(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    match_id: UUID | None = None,
    join_code: str | None = None,
) -> MatchSnapshot:
    profile = await get_profile_or_raise(session, user_id)
    match = await _lock_match_for_join(session, match_id=match_id, join_code=join_code)

    if match.status != MatchStatus.WAITING:
        raise InvalidStateError
    if now_utc > match.expires_at:
        raise ExpiredError
    participants = await MatchParticipantsRepo.list_for_match(session, match_id=match.id)
    if any(int(item.user_id) == profile.id for item in participants):
        raise AlreadyJoinedError
    if len(participants) >= MATCH_CAPACITY:
        raise FullError

    await MatchParticipantsRepo.create(
        session,
        match_id=match.id,
        user_id=profile.id,
        joined_at=now_utc,
    )
    match.status = ensure_match_transition(match.status, MatchStatus.ACTIVE)
    match.started_at = now_utc
    match.expires_at = resolve_match_expiry(now_utc)
    match.current_question_index = 0
    await session.flush()

    await emit_analytics_event(
        session,
        event_type="match_joined",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=profile.id,
        payload={"match_id": str(match.id)},
    )
    logger.info("match_joined", match_id=str(match.id), user_id=profile.id)
    return build_match_snapshot(match)


async def quick_play(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    category_id: int | None = None,
    rng: random.Random | None = None,
) -> MatchJoinResult:
    profile = await get_profile_or_raise(session, user_id)
    candidates = await MatchesRepo.list_open_public(
        session,
        status=MatchStatus.WAITING.value,
        now_utc=now_utc,
        exclude_user_id=profile.id,
        limit=QUICK_PLAY_CANDIDATES,
        category_id=category_id,
    )
    for candidate in candidates:
        try:
            snapshot = await join_match(
                session,
                user_id=profile.id,
                now_utc=now_utc,
                match_id=candidate.id,
            )
        except (InvalidStateError, ExpiredError, FullError) as exc:
            logger.info(
                "quick_play_candidate_skipped",
                match_id=str(candidate.id),
                reason=type(exc).__name__,
            )
            continue
        return MatchJoinResult(snapshot=snapshot, created_now=False)

    snapshot = await create_match(
        session,
        user_id=profile.id,
        now_utc=now_utc,
        is_private=False,
        category_id=category_id,
        rng=rng,
    )
    return MatchJoinResult(snapshot=snapshot, created_now=True)
