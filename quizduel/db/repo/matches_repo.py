from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.match_participants import MatchParticipant
from quizduel.db.models.matches import Match


class MatchesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, match: Match) -> Match:
        session.add(match)
        await session.flush()
        return match

    @staticmethod
    async def get_by_id(session: AsyncSession, match_id: UUID) -> Match | None:
        return await session.get(Match, match_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, match_id: UUID) -> Match | None:
        stmt = (
            select(Match)
            .where(Match.id == match_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_join_code_for_update(session: AsyncSession, join_code: str) -> Match | None:
        stmt = (
            select(Match)
            .where(Match.join_code == join_code)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def join_code_exists(session: AsyncSession, join_code: str) -> bool:
        stmt = select(Match.id).where(Match.join_code == join_code).limit(1)
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
        stmt = select(func.count(Match.id), func.min(Match.created_at)).where(
            Match.creator_id == creator_id,
            Match.created_at > since_utc,
            Match.status.not_in(tuple(excluded_statuses)),
        )
        result = await session.execute(stmt)
        count, oldest = result.one()
        return int(count or 0), oldest

    @staticmethod
    async def list_due_expired_ids(
        session: AsyncSession,
        *,
        now_utc: datetime,
        statuses: Iterable[str],
        limit: int,
    ) -> list[UUID]:
        stmt = (
            select(Match.id)
            .where(Match.status.in_(tuple(statuses)), Match.expires_at < now_utc)
            .order_by(Match.expires_at.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_due_expired_for_update(
        session: AsyncSession,
        *,
        now_utc: datetime,
        statuses: Iterable[str],
        limit: int,
    ) -> list[Match]:
        stmt = (
            select(Match)
            .where(Match.status.in_(tuple(statuses)), Match.expires_at < now_utc)
            .order_by(Match.expires_at.asc())
            .limit(max(1, int(limit)))
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_open_public(
        session: AsyncSession,
        *,
        status: str,
        now_utc: datetime,
        exclude_user_id: int | None,
        limit: int,
        offset: int = 0,
        category_id: int | None = None,
    ) -> list[Match]:
        participants_count = (
            select(func.count(MatchParticipant.user_id))
            .where(MatchParticipant.match_id == Match.id)
            .scalar_subquery()
        )
        stmt = select(Match).where(
            Match.status == status,
            Match.is_private.is_(False),
            Match.expires_at >= now_utc,
            participants_count < 2,
        )
        if category_id is not None:
            stmt = stmt.where(Match.category_id == category_id)
        if exclude_user_id is not None:
            own_match_ids = select(MatchParticipant.match_id).where(
                MatchParticipant.user_id == exclude_user_id
            )
            stmt = stmt.where(Match.id.not_in(own_match_ids))
        stmt = (
            stmt.order_by(Match.created_at.asc(), Match.id.asc())
            .limit(max(1, int(limit)))
            .offset(max(0, int(offset)))
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
        newest_first: bool = True,
    ) -> list[Match]:
        order_column = func.coalesce(Match.completed_at, Match.created_at)
        stmt = (
            select(Match)
            .join(MatchParticipant, MatchParticipant.match_id == Match.id)
            .where(MatchParticipant.user_id == user_id, Match.status.in_(tuple(statuses)))
            .order_by(
                order_column.desc() if newest_first else order_column.asc(),
                Match.id.asc(),
            )
            .limit(max(1, int(limit)))
            .offset(max(0, int(offset)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
