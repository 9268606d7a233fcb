from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_answers import MatchAnswer
from quizduel.db.repo.match_answers_repo import MatchAnswersRepo
from quizduel.db.repo.match_participants_repo import MatchParticipantsRepo
from quizduel.db.repo.questions_repo import QuestionsRepo
from quizduel.game.auth import require_user
from quizduel.game.dispatch import dispatch_events
from quizduel.game.errors import (
    DuplicateAnswerError,
    ExpiredError,
    InvalidSelectionError,
    InvalidStateError,
    NotFoundError,
)
from quizduel.game.matches.completion import complete_match
from quizduel.game.matches.internal import get_match_for_update_or_raise, match_question_ids
from quizduel.game.matches.state import MATCH_CAPACITY, MatchStatus
from quizduel.game.matches.types import AnswerResult
from quizduel.game.questions.vault import get_correct_option

SELECTED_ANSWER_MIN = 0
SELECTED_ANSWER_MAX = 4


async def submit_answer(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: int | None,
    question_id: UUID,
    selected_answer: int,
    time_spent: int,
    now_utc: datetime,
) -> AnswerResult:
    resolved_user_id = require_user(user_id)
    # The row lock serializes the two final submissions of a match.
    match = await get_match_for_update_or_raise(session, match_id)

    is_solo_creator = (
        match.status == MatchStatus.WAITING and match.creator_id == resolved_user_id
    )
    if match.status != MatchStatus.ACTIVE and not is_solo_creator:
        raise InvalidStateError
    if now_utc > match.expires_at:
        raise ExpiredError

    question_ids = match_question_ids(match)
    if question_id not in question_ids:
        raise NotFoundError
    if await QuestionsRepo.get_by_id(session, question_id) is None:
        raise NotFoundError
    participant = await MatchParticipantsRepo.get(
        session,
        match_id=match.id,
        user_id=resolved_user_id,
    )
    if participant is None:
        raise NotFoundError

    if await MatchAnswersRepo.exists(
        session,
        match_id=match.id,
        user_id=resolved_user_id,
        question_id=question_id,
    ):
        raise DuplicateAnswerError
    if not SELECTED_ANSWER_MIN <= int(selected_answer) <= SELECTED_ANSWER_MAX:
        raise InvalidSelectionError
    if int(time_spent) < 0:
        raise InvalidSelectionError

    correct_option = await get_correct_option(session, question_id=question_id)
    is_correct = int(selected_answer) != 0 and int(selected_answer) == correct_option

    try:
        await MatchAnswersRepo.create(
            session,
            answer=MatchAnswer(
                match_id=match.id,
                user_id=resolved_user_id,
                question_id=question_id,
                position=question_ids.index(question_id),
                selected_answer=int(selected_answer),
                time_spent=int(time_spent),
                is_correct=is_correct,
                answered_at=now_utc,
            ),
        )
    except IntegrityError as exc:
        raise DuplicateAnswerError from exc

    answers = await MatchAnswersRepo.list_for_participant(
        session,
        match_id=match.id,
        user_id=resolved_user_id,
    )
    if match.status == MatchStatus.ACTIVE:
        match.current_question_index = max(
            int(match.current_question_index or 0),
            min(len(answers), len(question_ids) - 1),
        )
    if len(answers) < len(question_ids):
        await session.flush()
        return AnswerResult(is_correct=is_correct, user_completed=False, match_completed=False)

    participant.total_score = sum(1 for answer in answers if answer.is_correct)
    participant.total_time = sum(int(answer.time_spent) for answer in answers)
    participant.completed_at = now_utc
    await session.flush()

    participants = await MatchParticipantsRepo.list_for_match(session, match_id=match.id)
    both_completed = len(participants) == MATCH_CAPACITY and all(
        item.completed_at is not None for item in participants
    )
    if not both_completed or match.status != MatchStatus.ACTIVE:
        return AnswerResult(is_correct=is_correct, user_completed=True, match_completed=False)

    event = await complete_match(session, match=match, participants=participants, now_utc=now_utc)
    await dispatch_events(session, [event], now_utc=now_utc)
    return AnswerResult(is_correct=is_correct, user_completed=True, match_completed=True)
