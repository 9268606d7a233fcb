from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.repo.analytics_repo import AnalyticsRepo

EVENT_SOURCE_API = "API"
EVENT_SOURCE_WORKER = "WORKER"
EVENT_SOURCE_SYSTEM = "SYSTEM"


async def emit_analytics_event(
    session: AsyncSession,
    *,
    event_type: str,
    source: str,
    happened_at: datetime,
    user_id: int | None = None,
    payload: dict[str, object] | None = None,
) -> None:
    await AnalyticsRepo.create_event(
        session,
        event_type=event_type,
        source=source,
        user_id=user_id,
        payload=payload or {},
        happened_at=happened_at,
    )
