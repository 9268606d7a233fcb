from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_results import MatchResult


class MatchResultsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, result: MatchResult) -> MatchResult:
        session.add(result)
        await session.flush()
        return result

    @staticmethod
    async def get_by_match_id(session: AsyncSession, match_id: UUID) -> MatchResult | None:
        return await session.get(MatchResult, match_id)

    @staticmethod
    async def list_for_player(session: AsyncSession, *, user_id: int) -> list[MatchResult]:
        stmt = (
            select(MatchResult)
            .where(or_(MatchResult.player1_id == user_id, MatchResult.player2_id == user_id))
            .order_by(MatchResult.completed_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
