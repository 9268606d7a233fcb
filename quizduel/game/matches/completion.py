from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.models.match_participants import MatchParticipant
from quizduel.db.models.match_results import MatchResult
from quizduel.db.models.matches import Match
from quizduel.db.repo.match_results_repo import MatchResultsRepo
from quizduel.db.repo.profiles_repo import ProfilesRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.game.errors import InvalidStateError
from quizduel.game.events import MatchCompleted
from quizduel.game.matches.state import MATCH_CAPACITY, MatchStatus, ensure_match_transition

logger = structlog.get_logger(__name__)


@dataclass(slots=True, frozen=True)
class PlayerTotals:
    user_id: int
    score: int
    time: int


@dataclass(slots=True, frozen=True)
class WinnerDecision:
    winner_id: int | None
    is_draw: bool


def determine_winner(player1: PlayerTotals, player2: PlayerTotals) -> WinnerDecision:
    if player1.score != player2.score:
        winner = player1 if player1.score > player2.score else player2
        return WinnerDecision(winner_id=winner.user_id, is_draw=False)
    if player1.time != player2.time:
        winner = player1 if player1.time < player2.time else player2
        return WinnerDecision(winner_id=winner.user_id, is_draw=False)
    return WinnerDecision(winner_id=None, is_draw=True)


def _totals(participant: MatchParticipant) -> PlayerTotals:
    return PlayerTotals(
        user_id=int(participant.user_id),
        score=int(participant.total_score or 0),
        time=int(participant.total_time or 0),
    )


async def complete_match(
    session: AsyncSession,
    *,
    match: Match,
    participants: Sequence[MatchParticipant],
    now_utc: datetime,
) -> MatchCompleted:
    if len(participants) != MATCH_CAPACITY or any(item.completed_at is None for item in participants):
        raise InvalidStateError("match completion requires two finished participants")

    player1, player2 = (_totals(item) for item in participants)
    decision = determine_winner(player1, player2)

    match.status = ensure_match_transition(match.status, MatchStatus.COMPLETED)
    match.completed_at = now_utc
    await MatchResultsRepo.create(
        session,
        result=MatchResult(
            match_id=match.id,
            player1_id=player1.user_id,
            player1_score=player1.score,
            player1_time=player1.time,
            player2_id=player2.user_id,
            player2_score=player2.score,
            player2_time=player2.time,
            winner_id=decision.winner_id,
            is_draw=decision.is_draw,
            completed_at=now_utc,
        ),
    )
    for totals in (player1, player2):
        await ProfilesRepo.add_correct_answers(session, user_id=totals.user_id, amount=totals.score)

    tournament_match = await TournamentMatchesRepo.get_by_match_id(session, match_id=match.id)
    tournament_id = tournament_match.tournament_id if tournament_match is not None else None

    await emit_analytics_event(
        session,
        event_type="match_completed",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=None,
        payload={
            "match_id": str(match.id),
            "winner_id": decision.winner_id,
            "is_draw": decision.is_draw,
            "tournament_id": str(tournament_id) if tournament_id is not None else None,
        },
    )
    logger.info(
        "match_completed",
        match_id=str(match.id),
        winner_id=decision.winner_id,
        is_draw=decision.is_draw,
    )
    return MatchCompleted(
        match_id=match.id,
        creator_id=match.creator_id,
        player1_id=player1.user_id,
        player2_id=player2.user_id,
        winner_id=decision.winner_id,
        is_draw=decision.is_draw,
        completed_at=now_utc,
        tournament_id=tournament_id,
    )
