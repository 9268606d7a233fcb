from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.question_answers import QuestionAnswer


class QuestionAnswersRepo:
    @staticmethod
    async def get_correct_option(session: AsyncSession, *, question_id: UUID) -> int | None:
        stmt = select(QuestionAnswer.correct_option).where(QuestionAnswer.question_id == question_id)
        result = await session.execute(stmt)
        value = result.scalar_one_or_none()
        return int(value) if value is not None else None

    @staticmethod
    async def upsert(session: AsyncSession, *, question_id: UUID, correct_option: int) -> None:
        record = await session.get(QuestionAnswer, question_id)
        if record is None:
            session.add(QuestionAnswer(question_id=question_id, correct_option=correct_option))
        else:
            record.correct_option = correct_option
        await session.flush()

    @staticmethod
    async def map_correct_options(
        session: AsyncSession,
        *,
        question_ids: Sequence[UUID],
    ) -> dict[UUID, int]:
        if not question_ids:
            return {}
        stmt = select(QuestionAnswer.question_id, QuestionAnswer.correct_option).where(
            QuestionAnswer.question_id.in_(tuple(question_ids))
        )
        result = await session.execute(stmt)
        return {question_id: int(option) for question_id, option in result.all()}
