from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.game.auth import require_user
from quizduel.game.errors import InvalidStateError, NotFoundError
from quizduel.game.tournaments.internal import build_tournament_match_view, build_tournament_snapshot
from quizduel.game.tournaments.state import TOURNAMENT_CAPACITY, TournamentRound, TournamentStatus
from quizduel.game.tournaments.types import (
    TournamentDetails,
    TournamentHistoryItem,
    TournamentMatchRef,
    TournamentResults,
    TournamentSnapshot,
)

DEFAULT_PAGE_SIZE = 20


async def get_tournament_details(
    session: AsyncSession,
    *,
    tournament_code: str,
    user_id: int | None,
) -> TournamentDetails:
    resolved_user_id = require_user(user_id)
    tournament = await TournamentsRepo.get_by_code(session, tournament_code)
    if tournament is None:
        raise NotFoundError
    participants = await TournamentParticipantsRepo.list_for_tournament(
        session,
        tournament_id=tournament.id,
    )
    participant_ids = [int(item.user_id) for item in participants]
    if resolved_user_id not in participant_ids:
        raise NotFoundError

    rows = await TournamentMatchesRepo.list_for_tournament(session, tournament_id=tournament.id)
    return TournamentDetails(
        snapshot=build_tournament_snapshot(tournament),
        participant_ids=participant_ids,
        matches=[build_tournament_match_view(row) for row in rows],
    )


async def list_waiting_tournaments(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    limit: int = DEFAULT_PAGE_SIZE,
) -> list[TournamentSnapshot]:
    rows = await TournamentsRepo.list_joinable(
        session,
        status=TournamentStatus.WAITING.value,
        now_utc=now_utc,
        capacity=TOURNAMENT_CAPACITY,
        exclude_user_id=user_id,
        limit=limit,
    )
    return [build_tournament_snapshot(row) for row in rows]


async def list_user_tournaments(
    session: AsyncSession,
    *,
    user_id: int | None,
    limit: int = DEFAULT_PAGE_SIZE,
) -> list[TournamentSnapshot]:
    rows = await TournamentsRepo.list_for_user_by_status(
        session,
        user_id=require_user(user_id),
        statuses=(TournamentStatus.WAITING.value, TournamentStatus.ACTIVE.value),
        limit=limit,
    )
    return [build_tournament_snapshot(row) for row in rows]


async def get_tournament_results(
    session: AsyncSession,
    *,
    tournament_code: str,
) -> TournamentResults:
    tournament = await TournamentsRepo.get_by_code(session, tournament_code)
    if tournament is None:
        raise NotFoundError
    if tournament.status != TournamentStatus.COMPLETED:
        raise InvalidStateError

    rows = await TournamentMatchesRepo.list_for_tournament(session, tournament_id=tournament.id)
    runner_up_id: int | None = None
    for row in rows:
        if row.round == TournamentRound.FINAL and row.winner_id is not None:
            players = (int(row.player1_id), int(row.player2_id))
            runner_up_id = players[1] if int(row.winner_id) == players[0] else players[0]
    return TournamentResults(
        snapshot=build_tournament_snapshot(tournament),
        matches=[build_tournament_match_view(row) for row in rows],
        runner_up_id=runner_up_id,
    )


async def list_user_tournament_history(
    session: AsyncSession,
    *,
    user_id: int | None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[TournamentHistoryItem]:
    resolved_user_id = require_user(user_id)
    rows = await TournamentsRepo.list_for_user_by_status(
        session,
        user_id=resolved_user_id,
        statuses=(TournamentStatus.COMPLETED.value,),
        limit=limit,
        offset=offset,
    )
    return [
        TournamentHistoryItem(
            tournament_id=row.id,
            tournament_code=row.tournament_code,
            winner_id=row.winner_id,
            is_winner=row.winner_id is not None and int(row.winner_id) == resolved_user_id,
            completed_at=row.completed_at,
        )
        for row in rows
    ]


async def get_tournament_match_for_match(
    session: AsyncSession,
    *,
    match_id: UUID,
) -> TournamentMatchRef | None:
    row = await TournamentMatchesRepo.get_by_match_id(session, match_id=match_id)
    if row is None:
        return None
    tournament = await TournamentsRepo.get_by_id(session, row.tournament_id)
    if tournament is None:
        return None
    return TournamentMatchRef(
        tournament_id=tournament.id,
        tournament_code=tournament.tournament_code,
        round=row.round,
        status=row.status,
    )
