from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.analytics_events import AnalyticsEvent


class AnalyticsRepo:
    @staticmethod
    async def create_event(
        session: AsyncSession,
        *,
        event_type: str,
        source: str,
        user_id: int | None,
        payload: dict[str, object],
        happened_at: datetime,
    ) -> AnalyticsEvent:
        event = AnalyticsEvent(
            event_type=event_type,
            source=source,
            user_id=user_id,
            payload=payload,
            happened_at=happened_at,
        )
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def count_by_type(session: AsyncSession, *, event_type: str) -> int:
        stmt = select(func.count(AnalyticsEvent.id)).where(AnalyticsEvent.event_type == event_type)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
