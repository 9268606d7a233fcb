from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.tournament_participants import TournamentParticipant
from quizduel.db.models.tournaments import Tournament


class TournamentsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, tournament: Tournament) -> Tournament:
        session.add(tournament)
        await session.flush()
        return tournament

    @staticmethod
    async def get_by_id(session: AsyncSession, tournament_id: UUID) -> Tournament | None:
        return await session.get(Tournament, tournament_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, tournament_id: UUID) -> Tournament | None:
        stmt = (
            select(Tournament)
            .where(Tournament.id == tournament_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(session: AsyncSession, tournament_code: str) -> Tournament | None:
        stmt = select(Tournament).where(Tournament.tournament_code == tournament_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, tournament_code: str) -> Tournament | None:
        stmt = (
            select(Tournament)
            .where(Tournament.tournament_code == tournament_code)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(session: AsyncSession, tournament_code: str) -> bool:
        stmt = select(Tournament.id).where(Tournament.tournament_code == tournament_code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def count_created_since(
        session: AsyncSession,
        *,
        creator_id: int,
        since_utc: datetime,
        excluded_statuses: Iterable[str],
    ) -> tuple[int, datetime | None]:
        stmt = select(func.count(Tournament.id), func.min(Tournament.created_at)).where(
            Tournament.creator_id == creator_id,
            Tournament.created_at > since_utc,
            Tournament.status.not_in(tuple(excluded_statuses)),
        )
        result = await session.execute(stmt)
        count, oldest = result.one()
        return int(count or 0), oldest

    @staticmethod
    async def list_due_expired_ids(
        session: AsyncSession,
        *,
        now_utc: datetime,
        status: str,
        limit: int,
    ) -> list[UUID]:
        stmt = (
            select(Tournament.id)
            .where(Tournament.status == status, Tournament.expires_at < now_utc)
            .order_by(Tournament.expires_at.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_joinable(
        session: AsyncSession,
        *,
        status: str,
        now_utc: datetime,
        capacity: int,
        exclude_user_id: int | None,
        limit: int,
    ) -> list[Tournament]:
        participants_count = (
            select(func.count(TournamentParticipant.user_id))
            .where(TournamentParticipant.tournament_id == Tournament.id)
            .scalar_subquery()
        )
        stmt = select(Tournament).where(
            Tournament.status == status,
            Tournament.expires_at >= now_utc,
            participants_count < capacity,
        )
        if exclude_user_id is not None:
            joined_ids = select(TournamentParticipant.tournament_id).where(
                TournamentParticipant.user_id == exclude_user_id
            )
            stmt = stmt.where(Tournament.id.not_in(joined_ids))
        stmt = stmt.order_by(Tournament.created_at.asc(), Tournament.id.asc()).limit(
            max(1, int(limit))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_user_by_status(
        session: AsyncSession,
        *,
        user_id: int,
        statuses: Iterable[str],
        limit: int,
        offset: int = 0,
    ) -> list[Tournament]:
        order_column = func.coalesce(Tournament.completed_at, Tournament.created_at)
        stmt = (
            select(Tournament)
            .join(TournamentParticipant, TournamentParticipant.tournament_id == Tournament.id)
            .where(
                TournamentParticipant.user_id == user_id,
                Tournament.status.in_(tuple(statuses)),
            )
            .order_by(order_column.desc(), Tournament.id.asc())
            .limit(max(1, int(limit)))
            .offset(max(0, int(offset)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
