from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_answers import MatchAnswer


class MatchAnswersRepo:
    @staticmethod
    async def create(session: AsyncSession, *, answer: MatchAnswer) -> MatchAnswer:
        session.add(answer)
        await session.flush()
        return answer

    @staticmethod
    async def exists(
        session: AsyncSession,
        *,
        match_id: UUID,
        user_id: int,
        question_id: UUID,
    ) -> bool:
        stmt = (
            select(MatchAnswer.id)
            .where(
                MatchAnswer.match_id == match_id,
                MatchAnswer.user_id == user_id,
                MatchAnswer.question_id == question_id,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def count_for_participant(session: AsyncSession, *, match_id: UUID, user_id: int) -> int:
        stmt = select(func.count(MatchAnswer.id)).where(
            MatchAnswer.match_id == match_id,
            MatchAnswer.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_for_participant(
        session: AsyncSession,
        *,
        match_id: UUID,
        user_id: int,
    ) -> list[MatchAnswer]:
        stmt = (
            select(MatchAnswer)
            .where(MatchAnswer.match_id == match_id, MatchAnswer.user_id == user_id)
            .order_by(MatchAnswer.position.asc(), MatchAnswer.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_match(session: AsyncSession, *, match_id: UUID) -> list[MatchAnswer]:
        stmt = (
            select(MatchAnswer)
            .where(MatchAnswer.match_id == match_id)
            .order_by(MatchAnswer.user_id.asc(), MatchAnswer.position.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_for_participant(session: AsyncSession, *, match_id: UUID, user_id: int) -> int:
        stmt = delete(MatchAnswer).where(
            MatchAnswer.match_id == match_id,
            MatchAnswer.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def delete_for_match(session: AsyncSession, *, match_id: UUID) -> int:
        stmt = delete(MatchAnswer).where(MatchAnswer.match_id == match_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
