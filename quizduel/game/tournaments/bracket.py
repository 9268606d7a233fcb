from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.models.tournament_matches import TournamentMatch
from quizduel.db.models.tournaments import Tournament
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.game.errors import DataIntegrityError
from quizduel.game.events import DomainEvent, MatchCompleted, SemifinalResolved, TournamentCompleted
from quizduel.game.matches.internal import insert_match
from quizduel.game.questions.bank import select_question_ids
from quizduel.game.tournaments.state import (
    SEMIFINAL_ROUNDS,
    TournamentMatchStatus,
    TournamentRound,
    TournamentStatus,
    ensure_tournament_match_transition,
    ensure_tournament_transition,
)

logger = structlog.get_logger(__name__)


async def _create_bracket_match(
    session: AsyncSession,
    *,
    tournament: Tournament,
    round_code: TournamentRound,
    question_ids: Sequence[UUID],
    player1_id: int,
    player2_id: int,
    now_utc: datetime,
) -> TournamentMatch:
    match = await insert_match(
        session,
        question_ids=question_ids,
        player_ids=[player1_id, player2_id],
        now_utc=now_utc,
        creator_id=None,
        category_id=tournament.category_id,
    )
    return await TournamentMatchesRepo.create(
        session,
        tournament_match=TournamentMatch(
            id=uuid4(),
            tournament_id=tournament.id,
            round=round_code.value,
            match_id=match.id,
            player1_id=player1_id,
            player2_id=player2_id,
            status=TournamentMatchStatus.ACTIVE.value,
            winner_id=None,
        ),
    )


async def start_bracket(
    session: AsyncSession,
    *,
    tournament: Tournament,
    participant_ids: Sequence[int],
    now_utc: datetime,
    rng: random.Random | None = None,
) -> list[TournamentMatch]:
    picker = rng if rng is not None else random.SystemRandom()
    seeding = list(participant_ids)
    picker.shuffle(seeding)

    semifinal_question_ids = await select_question_ids(
        session,
        category_id=tournament.category_id,
        rng=rng,
    )
    final_question_ids = await select_question_ids(
        session,
        category_id=tournament.category_id,
        rng=rng,
    )

    pairs = ((seeding[0], seeding[1]), (seeding[2], seeding[3]))
    semifinals: list[TournamentMatch] = []
    for round_code, (player1_id, player2_id) in zip(SEMIFINAL_ROUNDS, pairs):
        semifinals.append(
            await _create_bracket_match(
                session,
                tournament=tournament,
                round_code=round_code,
                question_ids=semifinal_question_ids,
                player1_id=player1_id,
                player2_id=player2_id,
                now_utc=now_utc,
            )
        )

    tournament.final_question_ids = [str(question_id) for question_id in final_question_ids]
    tournament.status = ensure_tournament_transition(tournament.status, TournamentStatus.ACTIVE)
    tournament.started_at = now_utc
    await session.flush()

    await emit_analytics_event(
        session,
        event_type="tournament_started",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=None,
        payload={
            "tournament_id": str(tournament.id),
            "seeding": seeding,
            "semifinal_match_ids": [str(row.match_id) for row in semifinals],
        },
    )
    logger.info("tournament_bracket_started", tournament_id=str(tournament.id), seeding=seeding)
    return semifinals


async def resolve_semifinal_tie(session: AsyncSession, *, tournament_match: TournamentMatch) -> int:
    """Picks who advances from a drawn semifinal: first to finish, then player1."""
    participants = await MatchParticipantsRepo.list_for_match(
        session,
        match_id=tournament_match.match_id,
    )
    finished = {
        int(item.user_id): item.completed_at for item in participants if item.completed_at is not None
    }
    player1_done = finished.get(int(tournament_match.player1_id))
    player2_done = finished.get(int(tournament_match.player2_id))
    if player1_done is not None and player2_done is not None and player2_done < player1_done:
        return int(tournament_match.player2_id)
    return int(tournament_match.player1_id)


async def _start_final_if_ready(
    session: AsyncSession,
    *,
    tournament: Tournament,
    now_utc: datetime,
) -> UUID | None:
    semifinals = [
        await TournamentMatchesRepo.get_round(
            session,
            tournament_id=tournament.id,
            round_code=round_code.value,
        )
        for round_code in SEMIFINAL_ROUNDS
    ]
    if any(
        row is None or row.status != TournamentMatchStatus.COMPLETED or row.winner_id is None
        for row in semifinals
    ):
        return None
    existing_final = await TournamentMatchesRepo.get_round(
        session,
        tournament_id=tournament.id,
        round_code=TournamentRound.FINAL.value,
    )
    if existing_final is not None:
        return None
    if not tournament.final_question_ids:
        raise DataIntegrityError(f"tournament {tournament.id} has no reserved final questions")

    semi1, semi2 = semifinals
    final = await _create_bracket_match(
        session,
        tournament=tournament,
        round_code=TournamentRound.FINAL,
        question_ids=[UUID(str(item)) for item in tournament.final_question_ids],
        player1_id=int(semi1.winner_id),
        player2_id=int(semi2.winner_id),
        now_utc=now_utc,
    )
    await emit_analytics_event(
        session,
        event_type="tournament_final_started",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=None,
        payload={"tournament_id": str(tournament.id), "match_id": str(final.match_id)},
    )
    return final.match_id


async def handle_bracket_match_completed(
    session: AsyncSession,
    *,
    event: MatchCompleted,
    now_utc: datetime,
) -> list[DomainEvent]:
    bound = await TournamentMatchesRepo.get_by_match_id(session, match_id=event.match_id)
    if bound is None:
        return []
    # Tournament row first: concurrent semifinal completions queue here.
    tournament = await TournamentsRepo.get_by_id_for_update(session, bound.tournament_id)
    tournament_match = await TournamentMatchesRepo.get_by_match_id_for_update(
        session,
        match_id=event.match_id,
    )
    if tournament is None or tournament_match is None:
        raise DataIntegrityError(f"bracket match {event.match_id} lost its tournament")
    if tournament.status != TournamentStatus.ACTIVE:
        logger.warning(
            "bracket_match_completed_for_inactive_tournament",
            tournament_id=str(tournament.id),
            match_id=str(event.match_id),
            tournament_status=tournament.status,
        )
        return []
    if tournament_match.status != TournamentMatchStatus.ACTIVE:
        return []

    winner_id = event.winner_id
    resolved_by_tie_break = False
    if winner_id is None and tournament_match.round != TournamentRound.FINAL:
        winner_id = await resolve_semifinal_tie(session, tournament_match=tournament_match)
        resolved_by_tie_break = True

    tournament_match.status = ensure_tournament_match_transition(
        tournament_match.status,
        TournamentMatchStatus.COMPLETED,
    )
    tournament_match.winner_id = winner_id
    await session.flush()

    if tournament_match.round == TournamentRound.FINAL:
        tournament.status = ensure_tournament_transition(tournament.status, TournamentStatus.COMPLETED)
        tournament.completed_at = now_utc
        tournament.winner_id = winner_id
        await session.flush()
        await emit_analytics_event(
            session,
            event_type="tournament_completed",
            source=EVENT_SOURCE_API,
            happened_at=now_utc,
            user_id=winner_id,
            payload={"tournament_id": str(tournament.id), "winner_id": winner_id},
        )
        logger.info("tournament_completed", tournament_id=str(tournament.id), winner_id=winner_id)
        return [
            TournamentCompleted(
                tournament_id=tournament.id,
                creator_id=int(tournament.creator_id),
                winner_id=winner_id,
                completed_at=now_utc,
            )
        ]

    final_match_id = await _start_final_if_ready(session, tournament=tournament, now_utc=now_utc)
    return [
        SemifinalResolved(
            tournament_id=tournament.id,
            round=tournament_match.round,
            match_id=event.match_id,
            winner_id=int(winner_id),
            resolved_by_tie_break=resolved_by_tie_break,
            final_match_id=final_match_id,
            resolved_at=now_utc,
        )
    ]
