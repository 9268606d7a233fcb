from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_results import MatchResult
from quizduel.db.models.matches import Match
from quizduel.db.repo.match_answers_repo import MatchAnswersRepo
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.match_results_repo import MatchResultsRepo
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.tournament_matches_repo import TournamentMatchesRepo
from quizduel.game.auth import require_user
from quizduel.game.errors import DataIntegrityError, InvalidStateError, NotFoundError
from quizduel.game.matches.internal import (
    build_match_snapshot,
    build_participant_views,
    match_question_ids,
)
from quizduel.game.matches.state import MATCH_OPEN_STATUSES, MatchStatus
from quizduel.game.matches.types import (
    ActiveMatchRef,
    AnswerView,
    MatchDetails,
    MatchHistoryItem,
    MatchResults,
    MatchResultView,
    MatchSnapshot,
    PartialMatchResults,
)
from quizduel.game.questions.bank import load_public_questions
from quizduel.game.questions.types import PublicQuestion, ReviewedQuestion
from quizduel.game.questions.vault import get_correct_options

DEFAULT_PAGE_SIZE = 20


def _build_result_view(row: MatchResult) -> MatchResultView:
    return MatchResultView(
        match_id=row.match_id,
        player1_id=int(row.player1_id),
        player1_score=int(row.player1_score),
        player1_time=int(row.player1_time),
        player2_id=int(row.player2_id),
        player2_score=int(row.player2_score),
        player2_time=int(row.player2_time),
        winner_id=row.winner_id,
        is_draw=row.is_draw,
        completed_at=row.completed_at,
    )


async def _get_match_or_raise(session: AsyncSession, match_id: UUID) -> Match:
    match = await MatchesRepo.get_by_id(session, match_id)
    if match is None:
        raise NotFoundError
    return match


async def _get_result_or_raise(session: AsyncSession, match: Match) -> MatchResult:
    result = await MatchResultsRepo.get_by_match_id(session, match.id)
    if result is None:
        raise DataIntegrityError(f"completed match {match.id} has no result")
    return result


async def _load_answers(session: AsyncSession, *, match_id: UUID) -> dict[int, list[AnswerView]]:
    grouped: dict[int, list[AnswerView]] = defaultdict(list)
    for row in await MatchAnswersRepo.list_for_match(session, match_id=match_id):
        grouped[int(row.user_id)].append(
            AnswerView(
                question_id=row.question_id,
                position=int(row.position),
                selected_answer=int(row.selected_answer),
                time_spent=int(row.time_spent),
                is_correct=row.is_correct,
            )
        )
    return dict(grouped)


async def get_match_details(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: int | None,
) -> MatchDetails:
    resolved_user_id = require_user(user_id)
    match = await _get_match_or_raise(session, match_id)
    participants = await MatchParticipantsRepo.list_for_match(session, match_id=match.id)
    if all(int(item.user_id) != resolved_user_id for item in participants):
        raise NotFoundError
    if match.status == MatchStatus.COMPLETED:
        raise InvalidStateError

    return MatchDetails(
        snapshot=build_match_snapshot(match),
        participants=await build_participant_views(session, participants),
        questions=await load_public_questions(session, match_question_ids(match)),
    )


async def _reviewed_questions(session: AsyncSession, match: Match) -> list[ReviewedQuestion]:
    question_ids = match_question_ids(match)
    questions = await load_public_questions(session, question_ids)
    correct_options = await get_correct_options(session, question_ids=question_ids)
    return [
        ReviewedQuestion(question=question, correct_option=correct_options[question.question_id])
        for question in questions
    ]


async def get_match_results(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: int | None,
) -> MatchResults:
    require_user(user_id)
    match = await _get_match_or_raise(session, match_id)
    if match.status != MatchStatus.COMPLETED:
        raise InvalidStateError

    result = await _get_result_or_raise(session, match)
    return MatchResults(
        snapshot=build_match_snapshot(match),
        result=_build_result_view(result),
        questions=await _reviewed_questions(session, match),
        answers=await _load_answers(session, match_id=match.id),
    )


async def get_match_results_partial(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: int | None,
) -> PartialMatchResults:
    """Result view for any status; correct options and answers appear only once completed."""
    require_user(user_id)
    match = await _get_match_or_raise(session, match_id)
    participants = await MatchParticipantsRepo.list_for_match(session, match_id=match.id)
    is_completed = match.status == MatchStatus.COMPLETED
    result = await _get_result_or_raise(session, match) if is_completed else None
    questions: list[ReviewedQuestion | PublicQuestion]
    if is_completed:
        questions = list(await _reviewed_questions(session, match))
    else:
        questions = list(await load_public_questions(session, match_question_ids(match)))
    return PartialMatchResults(
        snapshot=build_match_snapshot(match),
        participants=await build_participant_views(session, participants),
        result=_build_result_view(result) if result is not None else None,
        questions=questions,
        answers=await _load_answers(session, match_id=match.id) if is_completed else None,
    )


async def list_user_match_history(
    session: AsyncSession,
    *,
    user_id: int | None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[MatchHistoryItem]:
    resolved_user_id = require_user(user_id)
    matches = await MatchesRepo.list_for_user_by_status(
        session,
        user_id=resolved_user_id,
        statuses=(MatchStatus.COMPLETED.value,),
        limit=limit,
        offset=offset,
    )
    items: list[MatchHistoryItem] = []
    for match in matches:
        result = await _get_result_or_raise(session, match)
        is_player1 = int(result.player1_id) == resolved_user_id
        tournament_match = await TournamentMatchesRepo.get_by_match_id(session, match_id=match.id)
        items.append(
            MatchHistoryItem(
                match_id=match.id,
                opponent_id=int(result.player2_id if is_player1 else result.player1_id),
                user_score=int(result.player1_score if is_player1 else result.player2_score),
                opponent_score=int(result.player2_score if is_player1 else result.player1_score),
                winner_id=result.winner_id,
                is_draw=result.is_draw,
                completed_at=result.completed_at,
                tournament_id=tournament_match.tournament_id if tournament_match else None,
            )
        )
    return items


async def get_active_match_for_user(
    session: AsyncSession,
    *,
    user_id: int | None,
) -> ActiveMatchRef | None:
    matches = await MatchesRepo.list_for_user_by_status(
        session,
        user_id=require_user(user_id),
        statuses=MATCH_OPEN_STATUSES,
        limit=1,
    )
    if not matches:
        return None
    return ActiveMatchRef(match_id=matches[0].id, status=matches[0].status)


async def list_open_matches(
    session: AsyncSession,
    *,
    user_id: int | None,
    now_utc: datetime,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[MatchSnapshot]:
    matches = await MatchesRepo.list_open_public(
        session,
        status=MatchStatus.WAITING.value,
        now_utc=now_utc,
        exclude_user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return [build_match_snapshot(match) for match in matches]
