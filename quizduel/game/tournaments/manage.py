from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import (
    EVENT_SOURCE_API,
    EVENT_SOURCE_WORKER,
    emit_analytics_event,
)
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from quizduel.game.auth import ensure_creator_or_admin, require_user
from quizduel.game.errors import InvalidStateError, NotFoundError
from quizduel.game.tournaments.internal import (
    build_tournament_snapshot,
    cancel_tournament_row,
    get_tournament_by_code_with_bracket_locked_or_raise,
    lock_tournament_with_bracket,
)
from quizduel.game.tournaments.state import (
    TournamentMatchStatus,
    TournamentStatus,
    ensure_tournament_match_transition,
)
from quizduel.game.tournaments.types import TournamentSnapshot

logger = structlog.get_logger(__name__)

_TERMINAL_STATUSES = frozenset({TournamentStatus.COMPLETED.value, TournamentStatus.CANCELLED.value})


async def leave_tournament(
    session: AsyncSession,
    *,
    tournament_code: str,
    user_id: int | None,
    now_utc: datetime,
) -> TournamentSnapshot:
    resolved_user_id = require_user(user_id)
    tournament = await get_tournament_by_code_with_bracket_locked_or_raise(
        session,
        tournament_code,
    )
    if tournament.status in _TERMINAL_STATUSES:
        raise InvalidStateError

    removed = await TournamentParticipantsRepo.delete_one(
        session,
        tournament_id=tournament.id,
        user_id=resolved_user_id,
    )
    if removed == 0:
        raise NotFoundError

    remaining = await TournamentParticipantsRepo.count_for_tournament(
        session,
        tournament_id=tournament.id,
    )
    if remaining == 0:
        await cancel_tournament_row(session, tournament=tournament, now_utc=now_utc)
    await emit_analytics_event(
        session,
        event_type="tournament_left",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=resolved_user_id,
        payload={
            "tournament_id": str(tournament.id),
            "participants_remaining": remaining,
            "cancelled": remaining == 0,
        },
    )
    return build_tournament_snapshot(tournament)


async def cancel_tournament(
    session: AsyncSession,
    *,
    tournament_code: str,
    by_user_id: int | None,
    now_utc: datetime,
) -> TournamentSnapshot:
    tournament = await get_tournament_by_code_with_bracket_locked_or_raise(
        session,
        tournament_code,
    )
    await ensure_creator_or_admin(session, user_id=by_user_id, creator_id=tournament.creator_id)
    if tournament.status in _TERMINAL_STATUSES:
        raise InvalidStateError

    cancelled_matches = await cancel_tournament_row(session, tournament=tournament, now_utc=now_utc)
    await emit_analytics_event(
        session,
        event_type="tournament_cancelled",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=by_user_id,
        payload={"tournament_id": str(tournament.id), "cancelled_matches": cancelled_matches},
    )
    logger.info(
        "tournament_cancelled",
        tournament_id=str(tournament.id),
        by_user_id=by_user_id,
        cancelled_matches=cancelled_matches,
    )
    return build_tournament_snapshot(tournament)


async def expire_waiting_tournament(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    now_utc: datetime,
) -> bool:
    tournament = await lock_tournament_with_bracket(session, tournament_id)
    if tournament is None:
        return False
    if tournament.status != TournamentStatus.WAITING or tournament.expires_at >= now_utc:
        return False

    await cancel_tournament_row(session, tournament=tournament, now_utc=now_utc)
    await emit_analytics_event(
        session,
        event_type="tournament_expired",
        source=EVENT_SOURCE_WORKER,
        happened_at=now_utc,
        user_id=None,
        payload={"tournament_id": str(tournament.id)},
    )
    return True


async def handle_bracket_match_cancelled(
    session: AsyncSession,
    *,
    match_id: UUID,
    now_utc: datetime,
) -> bool:
    """Stops the bracket a cancelled match belonged to; returns True if a tournament was cancelled."""
    bound = await TournamentMatchesRepo.get_by_match_id(session, match_id=match_id)
    if bound is None:
        return False
    tournament = await lock_tournament_with_bracket(session, bound.tournament_id)
    if tournament is not None and tournament.status == TournamentStatus.ACTIVE:
        await cancel_tournament_row(session, tournament=tournament, now_utc=now_utc)
        logger.warning(
            "tournament_cancelled_by_bracket_match",
            tournament_id=str(tournament.id),
            match_id=str(match_id),
        )
        return True

    tournament_match = await TournamentMatchesRepo.get_by_match_id_for_update(
        session,
        match_id=match_id,
    )
    if tournament_match is not None and tournament_match.status == TournamentMatchStatus.ACTIVE:
        tournament_match.status = ensure_tournament_match_transition(
            tournament_match.status,
            TournamentMatchStatus.CANCELLED,
        )
        await session.flush()
    return False
