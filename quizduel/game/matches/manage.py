from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.repo.match_answers_repo import MatchAnswersRepo
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.game.auth import ensure_creator_or_admin, require_user
from quizduel.game.errors import InvalidStateError, NotFoundError
from quizduel.game.matches.internal import (
    build_match_snapshot,
    cancel_match_row,
    get_match_for_update_or_raise,
)
from quizduel.game.matches.state import MATCH_TERMINAL_STATUSES
from quizduel.game.matches.types import MatchSnapshot
from quizduel.game.tournaments.manage import handle_bracket_match_cancelled

logger = structlog.get_logger(__name__)


async def leave_match(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: int | None,
    now_utc: datetime,
) -> MatchSnapshot:
    resolved_user_id = require_user(user_id)
    match = await get_match_for_update_or_raise(session, match_id)
    if match.status in MATCH_TERMINAL_STATUSES:
        raise InvalidStateError

    await MatchAnswersRepo.delete_for_participant(
        session,
        match_id=match.id,
        user_id=resolved_user_id,
    )
    removed = await MatchParticipantsRepo.delete_one(
        session,
        match_id=match.id,
        user_id=resolved_user_id,
    )
    if removed == 0:
        raise NotFoundError

    remaining = await MatchParticipantsRepo.list_for_match(session, match_id=match.id)
    cancelled = len(remaining) <= 1
    if cancelled:
        await cancel_match_row(session, match=match, now_utc=now_utc)
        await handle_bracket_match_cancelled(session, match_id=match.id, now_utc=now_utc)

    await emit_analytics_event(
        session,
        event_type="match_left",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=resolved_user_id,
        payload={"match_id": str(match.id), "cancelled": cancelled},
    )
    logger.info("match_left", match_id=str(match.id), user_id=resolved_user_id, cancelled=cancelled)
    return build_match_snapshot(match)


async def cancel_match(
    session: AsyncSession,
    *,
    match_id: UUID,
    by_user_id: int | None,
    now_utc: datetime,
) -> MatchSnapshot:
    match = await get_match_for_update_or_raise(session, match_id)
    await ensure_creator_or_admin(session, user_id=by_user_id, creator_id=match.creator_id)
    if match.status in MATCH_TERMINAL_STATUSES:
        raise InvalidStateError

    await cancel_match_row(session, match=match, now_utc=now_utc)
    await handle_bracket_match_cancelled(session, match_id=match.id, now_utc=now_utc)
    await emit_analytics_event(
        session,
        event_type="match_cancelled",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=by_user_id,
        payload={"match_id": str(match.id)},
    )
    logger.info("match_cancelled", match_id=str(match.id), by_user_id=by_user_id)
    return build_match_snapshot(match)
