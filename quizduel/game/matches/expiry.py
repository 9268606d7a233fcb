from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_WORKER, emit_analytics_event
from quizduel.db.models.matches import Match
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.game.errors import GameError
from quizduel.game.matches.internal import cancel_match_row
from quizduel.game.matches.state import MATCH_OPEN_STATUSES
from quizduel.game.matches.types import ExpirySweepResult
from quizduel.game.tournaments.manage import (
    expire_waiting_tournament,
    handle_bracket_match_cancelled,
)
from quizduel.game.tournaments.state import TournamentStatus

logger = structlog.get_logger(__name__)


async def _expire_locked_match(session: AsyncSession, *, match: Match, now_utc: datetime) -> bool:
    if match.status not in MATCH_OPEN_STATUSES or match.expires_at >= now_utc:
        return False
    previous_status = match.status
    await cancel_match_row(session, match=match, now_utc=now_utc)
    await handle_bracket_match_cancelled(session, match_id=match.id, now_utc=now_utc)
    await emit_analytics_event(
        session,
        event_type="match_expired",
        source=EVENT_SOURCE_WORKER,
        happened_at=now_utc,
        user_id=None,
        payload={"match_id": str(match.id), "previous_status": previous_status},
    )
    return True


async def expire_match(session: AsyncSession, *, match_id: UUID, now_utc: datetime) -> bool:
    match = await MatchesRepo.get_by_id_for_update(session, match_id)
    if match is None:
        return False
    return await _expire_locked_match(session, match=match, now_utc=now_utc)


async def list_due_expired_match_ids(
    session: AsyncSession,
    *,
    now_utc: datetime,
    limit: int,
) -> list[UUID]:
    return await MatchesRepo.list_due_expired_ids(
        session,
        now_utc=now_utc,
        statuses=MATCH_OPEN_STATUSES,
        limit=limit,
    )


async def list_due_expired_tournament_ids(
    session: AsyncSession,
    *,
    now_utc: datetime,
    limit: int,
) -> list[UUID]:
    return await TournamentsRepo.list_due_expired_ids(
        session,
        now_utc=now_utc,
        status=TournamentStatus.WAITING.value,
        limit=limit,
    )


async def expire_due_matches(
    session: AsyncSession,
    *,
    now_utc: datetime,
    limit: int,
) -> ExpirySweepResult:
    result = ExpirySweepResult()
    matches = await MatchesRepo.list_due_expired_for_update(
        session,
        now_utc=now_utc,
        statuses=MATCH_OPEN_STATUSES,
        limit=limit,
    )
    for match in matches:
        result.matches_examined += 1
        try:
            if await _expire_locked_match(session, match=match, now_utc=now_utc):
                result.matches_cancelled += 1
        except GameError:
            result.matches_failed += 1
            logger.exception("match_expiry_failed", match_id=str(match.id))

    for tournament_id in await list_due_expired_tournament_ids(
        session,
        now_utc=now_utc,
        limit=limit,
    ):
        if await expire_waiting_tournament(session, tournament_id=tournament_id, now_utc=now_utc):
            result.tournaments_cancelled += 1
    return result
