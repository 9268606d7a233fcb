from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.tournament_participants import TournamentParticipant


class TournamentParticipantsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
        joined_at: datetime,
    ) -> TournamentParticipant:
        participant = TournamentParticipant(
            tournament_id=tournament_id,
            user_id=user_id,
            joined_at=joined_at,
        )
        session.add(participant)
        await session.flush()
        return participant

    @staticmethod
    async def count_for_tournament(session: AsyncSession, *, tournament_id: UUID) -> int:
        stmt = select(func.count(TournamentParticipant.user_id)).where(
            TournamentParticipant.tournament_id == tournament_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_for_tournament(
        session: AsyncSession,
        *,
        tournament_id: UUID,
    ) -> list[TournamentParticipant]:
        stmt = (
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_id == tournament_id)
            .order_by(TournamentParticipant.joined_at.asc(), TournamentParticipant.user_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_one(session: AsyncSession, *, tournament_id: UUID, user_id: int) -> int:
        stmt = delete(TournamentParticipant).where(
            TournamentParticipant.tournament_id == tournament_id,
            TournamentParticipant.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def delete_for_tournament(session: AsyncSession, *, tournament_id: UUID) -> int:
        stmt = delete(TournamentParticipant).where(
            TournamentParticipant.tournament_id == tournament_id
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
