from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.codes import generate_short_code
from quizduel.core.config import get_settings
from quizduel.db.models.match_participants import MatchParticipant
from quizduel.db.models.matches import Match
from quizduel.db.repo.match_answers_repo import MatchAnswersRepo
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.game.errors import GameError, NotFoundError
from quizduel.game.matches.state import (
    JOIN_CODE_LENGTH,
    JOIN_CODE_MAX_ATTEMPTS,
    MatchStatus,
    ensure_match_transition,
)
from quizduel.game.matches.types import MatchSnapshot, ParticipantView


def resolve_match_expiry(now_utc: datetime) -> datetime:
    return now_utc + timedelta(hours=max(1, int(get_settings().match_ttl_hours)))


def match_question_ids(match: Match) -> list[UUID]:
    return [UUID(str(item)) for item in match.question_ids]


def build_match_snapshot(match: Match) -> MatchSnapshot:
    return MatchSnapshot(
        match_id=match.id,
        status=match.status,
        creator_id=match.creator_id,
        category_id=match.category_id,
        is_private=match.is_private,
        join_code=match.join_code,
        question_ids=match_question_ids(match),
        current_question_index=match.current_question_index,
        created_at=match.created_at,
        started_at=match.started_at,
        completed_at=match.completed_at,
        expires_at=match.expires_at,
    )


async def build_participant_views(
    session: AsyncSession,
    participants: Sequence[MatchParticipant],
) -> list[ParticipantView]:
    views: list[ParticipantView] = []
    for participant in participants:
        answered_count = await MatchAnswersRepo.count_for_participant(
            session,
            match_id=participant.match_id,
            user_id=participant.user_id,
        )
        views.append(
            ParticipantView(
                user_id=int(participant.user_id),
                joined_at=participant.joined_at,
                answered_count=answered_count,
                completed_at=participant.completed_at,
                total_score=participant.total_score,
                total_time=participant.total_time,
            )
        )
    return views


async def generate_join_code(session: AsyncSession) -> str:
    for _ in range(JOIN_CODE_MAX_ATTEMPTS):
        candidate = generate_short_code(JOIN_CODE_LENGTH)
        if not await MatchesRepo.join_code_exists(session, candidate):
            return candidate
    raise GameError("join code generation exhausted")


async def insert_match(
    session: AsyncSession,
    *,
    question_ids: Sequence[UUID],
    player_ids: Sequence[int],
    now_utc: datetime,
    creator_id: int | None,
    category_id: int | None = None,
    is_private: bool = False,
    join_code: str | None = None,
) -> Match:
    """Inserts a match with its participants already seated.

    One player leaves the match waiting for an opponent; two players start it
    right away, which is how bracket matches skip matchmaking.
    """
    is_full = len(player_ids) >= 2
    match = await MatchesRepo.create(
        session,
        match=Match(
            id=uuid4(),
            status=MatchStatus.ACTIVE.value if is_full else MatchStatus.WAITING.value,
            question_ids=[str(question_id) for question_id in question_ids],
            creator_id=creator_id,
            category_id=category_id,
            is_private=is_private,
            join_code=join_code,
            current_question_index=0 if is_full else None,
            created_at=now_utc,
            started_at=now_utc if is_full else None,
            completed_at=None,
            expires_at=resolve_match_expiry(now_utc),
        ),
    )
    for player_id in player_ids:
        await MatchParticipantsRepo.create(
            session,
            match_id=match.id,
            user_id=player_id,
            joined_at=now_utc,
        )
    return match


async def cancel_match_row(session: AsyncSession, *, match: Match, now_utc: datetime) -> None:
    match.status = ensure_match_transition(match.status, MatchStatus.CANCELLED)
    match.completed_at = now_utc
    await MatchAnswersRepo.delete_for_match(session, match_id=match.id)
    await MatchParticipantsRepo.delete_for_match(session, match_id=match.id)
    await session.flush()


async def get_match_for_update_or_raise(session: AsyncSession, match_id: UUID) -> Match:
    match = await MatchesRepo.get_by_id_for_update(session, match_id)
    if match is None:
        raise NotFoundError
    return match
