from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.economy.rewards.service import (
    apply_match_completed_rewards,
    apply_tournament_completed_rewards,
)
from quizduel.game.events import DomainEvent, MatchCompleted, SemifinalResolved, TournamentCompleted
from quizduel.game.tournaments.bracket import handle_bracket_match_completed

logger = structlog.get_logger(__name__)


async def _handle_event(
    session: AsyncSession,
    *,
    event: DomainEvent,
    now_utc: datetime,
) -> list[DomainEvent]:
    if isinstance(event, MatchCompleted):
        if event.tournament_id is not None:
            return await handle_bracket_match_completed(session, event=event, now_utc=now_utc)
        await apply_match_completed_rewards(session, event=event, now_utc=now_utc)
        return []
    if isinstance(event, TournamentCompleted):
        await apply_tournament_completed_rewards(session, event=event, now_utc=now_utc)
        return []
    if isinstance(event, SemifinalResolved):
        logger.info(
            "semifinal_resolved",
            tournament_id=str(event.tournament_id),
            round=event.round,
            winner_id=event.winner_id,
            resolved_by_tie_break=event.resolved_by_tie_break,
            final_match_id=str(event.final_match_id) if event.final_match_id else None,
        )
        return []
    raise TypeError(f"unsupported domain event: {type(event).__name__}")


async def dispatch_events(
    session: AsyncSession,
    events: Iterable[DomainEvent],
    *,
    now_utc: datetime,
) -> list[DomainEvent]:
    """Runs every event and the follow-up events its handler returns, in order.

    Handlers share the caller's transaction, so a failure in any reaction rolls
    back the transition that produced the event.
    """
    queue: deque[DomainEvent] = deque(events)
    handled: list[DomainEvent] = []
    while queue:
        event = queue.popleft()
        handled.append(event)
        queue.extend(await _handle_event(session, event=event, now_utc=now_utc))
    return handled
