from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.tournament_matches import TournamentMatch


class TournamentMatchesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, tournament_match: TournamentMatch) -> TournamentMatch:
        session.add(tournament_match)
        await session.flush()
        return tournament_match

    @staticmethod
    async def get_by_match_id(session: AsyncSession, *, match_id: UUID) -> TournamentMatch | None:
        stmt = select(TournamentMatch).where(TournamentMatch.match_id == match_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_match_id_for_update(
        session: AsyncSession,
        *,
        match_id: UUID,
    ) -> TournamentMatch | None:
        stmt = (
            select(TournamentMatch)
            .where(TournamentMatch.match_id == match_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_round(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_code: str,
    ) -> TournamentMatch | None:
        stmt = select(TournamentMatch).where(
            TournamentMatch.tournament_id == tournament_id,
            TournamentMatch.round == round_code,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_tournament_for_update(
        session: AsyncSession,
        *,
        tournament_id: UUID,
    ) -> list[TournamentMatch]:
        stmt = (
            select(TournamentMatch)
            .where(TournamentMatch.tournament_id == tournament_id)
            .order_by(TournamentMatch.round.desc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_tournament(
        session: AsyncSession,
        *,
        tournament_id: UUID,
    ) -> list[TournamentMatch]:
        stmt = (
            select(TournamentMatch)
            .where(TournamentMatch.tournament_id == tournament_id)
            .order_by(TournamentMatch.round.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
