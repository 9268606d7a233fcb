from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.repo.question_answers_repo import QuestionAnswersRepo
from quizduel.db.repo.questions_repo import QuestionsRepo
from quizduel.game.errors import DataIntegrityError, InvalidSelectionError, NotFoundError

OPTION_MIN = 1
OPTION_MAX = 4

logger = structlog.get_logger(__name__)


async def get_correct_option(session: AsyncSession, *, question_id: UUID) -> int:
    option = await QuestionAnswersRepo.get_correct_option(session, question_id=question_id)
    if option is None:
        logger.error("answer_vault_record_missing", question_id=str(question_id))
        raise DataIntegrityError(f"missing answer record for question {question_id}")
    return option


async def set_correct_option(session: AsyncSession, *, question_id: UUID, option: int) -> None:
    if not OPTION_MIN <= int(option) <= OPTION_MAX:
        raise InvalidSelectionError
    if await QuestionsRepo.get_by_id(session, question_id) is None:
        raise NotFoundError
    await QuestionAnswersRepo.upsert(session, question_id=question_id, correct_option=int(option))


async def get_correct_options(
    session: AsyncSession,
    *,
    question_ids: Sequence[UUID],
) -> dict[UUID, int]:
    options = await QuestionAnswersRepo.map_correct_options(session, question_ids=question_ids)
    missing = [question_id for question_id in question_ids if question_id not in options]
    if missing:
        logger.error("answer_vault_records_missing", question_ids=[str(item) for item in missing])
        raise DataIntegrityError(f"missing answer records for {len(missing)} questions")
    return options
