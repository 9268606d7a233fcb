from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, BigIntPK, UTCDateTime


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"
    __table_args__ = (
        CheckConstraint(
            "source IN ('API','WORKER','SYSTEM')",
            name="source",
        ),
        Index("idx_analytics_events_type_time", "event_type", "happened_at"),
        Index("idx_analytics_events_user_time", "user_id", "happened_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    payload: Mapped[dict[str, object]] = mapped_column(JSON, nullable=False, default=dict)
    happened_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
