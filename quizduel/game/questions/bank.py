from __future__ import annotations

import random
from collections.abc import Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.repo.categories_repo import CategoriesRepo
from quizduel.db.repo.questions_repo import QuestionsRepo
from quizduel.game.errors import ContentUnavailableError, NotFoundError
from quizduel.game.questions.types import PublicQuestion

QUESTIONS_PER_MATCH = 5

logger = structlog.get_logger(__name__)


async def select_question_ids(
    session: AsyncSession,
    *,
    category_id: int | None = None,
    rng: random.Random | None = None,
    count: int = QUESTIONS_PER_MATCH,
) -> list[UUID]:
    if category_id is not None and await CategoriesRepo.get_by_id(session, category_id) is None:
        logger.warning("question_bank_unknown_category", category_id=category_id)
        raise ContentUnavailableError

    pool = await QuestionsRepo.list_ids(session, category_id=category_id)
    if len(pool) < count:
        logger.warning(
            "question_bank_pool_too_small",
            category_id=category_id,
            pool_size=len(pool),
            required=count,
        )
        raise ContentUnavailableError

    picker = rng if rng is not None else random.SystemRandom()
    return picker.sample(pool, count)


async def load_public_questions(
    session: AsyncSession,
    question_ids: Sequence[UUID],
) -> list[PublicQuestion]:
    rows = await QuestionsRepo.list_by_ids(session, question_ids=question_ids)
    by_id = {row.id: row for row in rows}
    questions: list[PublicQuestion] = []
    for position, question_id in enumerate(question_ids):
        row = by_id.get(question_id)
        if row is None:
            raise NotFoundError
        questions.append(
            PublicQuestion(
                question_id=row.id,
                position=position,
                question_text=row.question_text,
                options=(
                    row.option_1_text,
                    row.option_2_text,
                    row.option_3_text,
                    row.option_4_text,
                ),
                time_to_respond=int(row.time_to_respond),
                grade=int(row.grade),
                media_path=row.media_path,
            )
        )
    return questions
