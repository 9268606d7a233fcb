from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_participants import MatchParticipant


class MatchParticipantsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        match_id: UUID,
        user_id: int,
        joined_at: datetime,
    ) -> MatchParticipant:
        participant = MatchParticipant(match_id=match_id, user_id=user_id, joined_at=joined_at)
        session.add(participant)
        await session.flush()
        return participant

    @staticmethod
    async def get(session: AsyncSession, *, match_id: UUID, user_id: int) -> MatchParticipant | None:
        return await session.get(MatchParticipant, (match_id, user_id))

    @staticmethod
    async def list_for_match(session: AsyncSession, *, match_id: UUID) -> list[MatchParticipant]:
        stmt = (
            select(MatchParticipant)
            .where(MatchParticipant.match_id == match_id)
            .order_by(MatchParticipant.joined_at.asc(), MatchParticipant.user_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_one(session: AsyncSession, *, match_id: UUID, user_id: int) -> int:
        stmt = delete(MatchParticipant).where(
            MatchParticipant.match_id == match_id,
            MatchParticipant.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def delete_for_match(session: AsyncSession, *, match_id: UUID) -> int:
        stmt = delete(MatchParticipant).where(MatchParticipant.match_id == match_id)
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
