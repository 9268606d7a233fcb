from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.question_categories import QuestionCategory
from quizduel.db.models.questions import Question


class QuestionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, question: Question) -> Question:
        session.add(question)
        await session.flush()
        return question

    @staticmethod
    async def link_category(session: AsyncSession, *, question_id: UUID, category_id: int) -> None:
        session.add(QuestionCategory(question_id=question_id, category_id=category_id))
        await session.flush()

    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: UUID) -> Question | None:
        return await session.get(Question, question_id)

    @staticmethod
    async def list_ids(session: AsyncSession, *, category_id: int | None = None) -> list[UUID]:
        stmt = select(Question.id)
        if category_id is not None:
            stmt = stmt.join(QuestionCategory, QuestionCategory.question_id == Question.id).where(
                QuestionCategory.category_id == category_id
            )
        stmt = stmt.order_by(Question.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_by_ids(session: AsyncSession, *, question_ids: Sequence[UUID]) -> list[Question]:
        if not question_ids:
            return []
        stmt = select(Question).where(Question.id.in_(tuple(question_ids)))
        result = await session.execute(stmt)
        return list(result.scalars().all())
