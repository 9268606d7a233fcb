from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.codes import generate_tournament_code
from quizduel.core.config import get_settings
from quizduel.db.models.tournament_matches import TournamentMatch
from quizduel.db.models.tournaments import Tournament
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.game.errors import GameError, NotFoundError
from quizduel.game.matches.internal import cancel_match_row
from quizduel.game.matches.state import MATCH_OPEN_STATUSES
from quizduel.game.tournaments.state import (
    TOURNAMENT_CODE_MAX_ATTEMPTS,
    TournamentMatchStatus,
    TournamentStatus,
    ensure_tournament_match_transition,
    ensure_tournament_transition,
)
from quizduel.game.tournaments.types import TournamentMatchView, TournamentSnapshot


def resolve_tournament_expiry(now_utc: datetime) -> datetime:
    return now_utc + timedelta(hours=max(1, int(get_settings().tournament_ttl_hours)))


def build_tournament_snapshot(tournament: Tournament) -> TournamentSnapshot:
    return TournamentSnapshot(
        tournament_id=tournament.id,
        tournament_code=tournament.tournament_code,
        status=tournament.status,
        creator_id=int(tournament.creator_id),
        category_id=tournament.category_id,
        winner_id=tournament.winner_id,
        created_at=tournament.created_at,
        expires_at=tournament.expires_at,
        started_at=tournament.started_at,
        completed_at=tournament.completed_at,
    )


def build_tournament_match_view(row: TournamentMatch) -> TournamentMatchView:
    return TournamentMatchView(
        round=row.round,
        match_id=row.match_id,
        player1_id=int(row.player1_id),
        player2_id=int(row.player2_id),
        status=row.status,
        winner_id=row.winner_id,
    )


async def generate_unique_tournament_code(session: AsyncSession) -> str:
    for _ in range(TOURNAMENT_CODE_MAX_ATTEMPTS):
        candidate = generate_tournament_code()
        if not await TournamentsRepo.code_exists(session, candidate):
            return candidate
    raise GameError("tournament code generation exhausted")


async def get_tournament_by_code_for_update_or_raise(
    session: AsyncSession,
    tournament_code: str,
) -> Tournament:
    tournament = await TournamentsRepo.get_by_code_for_update(session, tournament_code)
    if tournament is None:
        raise NotFoundError
    return tournament


async def lock_tournament_with_bracket(
    session: AsyncSession,
    tournament_id: UUID,
) -> Tournament | None:
    """Locks the bracket matches and then the tournament row.

    Gameplay locks a match before its tournament, so every path that may cancel
    bracket matches takes the locks in that same order.
    """
    rows = await TournamentMatchesRepo.list_for_tournament(session, tournament_id=tournament_id)
    for match_id in sorted(row.match_id for row in rows):
        await MatchesRepo.get_by_id_for_update(session, match_id)
    return await TournamentsRepo.get_by_id_for_update(session, tournament_id)


async def get_tournament_by_code_with_bracket_locked_or_raise(
    session: AsyncSession,
    tournament_code: str,
) -> Tournament:
    found = await TournamentsRepo.get_by_code(session, tournament_code)
    if found is None:
        raise NotFoundError
    tournament = await lock_tournament_with_bracket(session, found.id)
    if tournament is None:
        raise NotFoundError
    return tournament


async def cancel_tournament_row(
    session: AsyncSession,
    *,
    tournament: Tournament,
    now_utc: datetime,
) -> int:
    """Cancels the tournament with its open bracket matches; returns how many matches were stopped."""
    tournament.status = ensure_tournament_transition(tournament.status, TournamentStatus.CANCELLED)
    tournament.completed_at = now_utc

    cancelled_matches = 0
    rows = await TournamentMatchesRepo.list_for_tournament_for_update(
        session,
        tournament_id=tournament.id,
    )
    for row in rows:
        if row.status == TournamentMatchStatus.ACTIVE:
            row.status = ensure_tournament_match_transition(
                row.status,
                TournamentMatchStatus.CANCELLED,
            )
        match = await MatchesRepo.get_by_id_for_update(session, row.match_id)
        if match is not None and match.status in MATCH_OPEN_STATUSES:
            await cancel_match_row(session, match=match, now_utc=now_utc)
            cancelled_matches += 1

    await TournamentParticipantsRepo.delete_for_tournament(session, tournament_id=tournament.id)
    await session.flush()
    return cancelled_matches
