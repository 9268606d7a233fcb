from __future__ import annotations

import random
from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from quizduel.db.models.tournaments import Tournament
from quizduel.db.repo.categories_repo import CategoriesRepo
from quizduel.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
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
from quizduel.game.tournaments.bracket import start_bracket
from quizduel.game.tournaments.internal import (
    build_tournament_snapshot,
    generate_unique_tournament_code,
    get_tournament_by_code_for_update_or_raise,
    resolve_tournament_expiry,
)
from quizduel.game.tournaments.state import TOURNAMENT_CAPACITY, TournamentStatus
from quizduel.game.tournaments.types import TournamentJoinResult, TournamentSnapshot

logger = structlog.get_logger(__name__)


async def create_tournament(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    category_id: int | None = None,
) -> TournamentSnapshot:
    profile = await get_profile_or_raise(session, user_id)
    await ensure_quota_available(
        session,
        user_id=profile.id,
        kind=QuotaKind.TOURNAMENT,
        now_utc=now_utc,
    )
    if category_id is not None and await CategoriesRepo.get_by_id(session, category_id) is None:
        raise NotFoundError

    tournament = await TournamentsRepo.create(
        session,
        tournament=Tournament(
            id=uuid4(),
            tournament_code=await generate_unique_tournament_code(session),
            status=TournamentStatus.WAITING.value,
            creator_id=profile.id,
            category_id=category_id,
            final_question_ids=None,
            winner_id=None,
            created_at=now_utc,
            expires_at=resolve_tournament_expiry(now_utc),
            started_at=None,
            completed_at=None,
        ),
    )
    await TournamentParticipantsRepo.create(
        session,
        tournament_id=tournament.id,
        user_id=profile.id,
        joined_at=now_utc,
    )
    await emit_analytics_event(
        session,
        event_type="tournament_created",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=profile.id,
        payload={"tournament_id": str(tournament.id), "category_id": category_id},
    )
    logger.info("tournament_created", tournament_id=str(tournament.id), user_id=profile.id)
    return build_tournament_snapshot(tournament)


async def join_tournament(
    session: AsyncSession,
    *,
    tournament_code: str,
    user_id: int | None,
    now_utc: datetime,
    rng: random.Random | None = None,
) -> TournamentJoinResult:
    profile = await get_profile_or_raise(session, user_id)
    tournament = await get_tournament_by_code_for_update_or_raise(session, tournament_code)

    if tournament.status != TournamentStatus.WAITING:
        raise InvalidStateError
    if now_utc > tournament.expires_at:
        raise ExpiredError
    participants = await TournamentParticipantsRepo.list_for_tournament(
        session,
        tournament_id=tournament.id,
    )
    participant_ids = [int(item.user_id) for item in participants]
    if profile.id in participant_ids:
        raise AlreadyJoinedError
    if len(participant_ids) >= TOURNAMENT_CAPACITY:
        raise FullError

    await TournamentParticipantsRepo.create(
        session,
        tournament_id=tournament.id,
        user_id=profile.id,
        joined_at=now_utc,
    )
    participant_ids.append(profile.id)
    await emit_analytics_event(
        session,
        event_type="tournament_joined",
        source=EVENT_SOURCE_API,
        happened_at=now_utc,
        user_id=profile.id,
        payload={"tournament_id": str(tournament.id), "participants_total": len(participant_ids)},
    )

    bracket_started = len(participant_ids) == TOURNAMENT_CAPACITY
    if bracket_started:
        await start_bracket(
            session,
            tournament=tournament,
            participant_ids=participant_ids,
            now_utc=now_utc,
            rng=rng,
        )
    return TournamentJoinResult(
        snapshot=build_tournament_snapshot(tournament),
        participants_total=len(participant_ids),
        bracket_started=bracket_started,
    )
