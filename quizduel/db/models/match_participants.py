from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, UTCDateTime


class MatchParticipant(Base):
    __tablename__ = "match_participants"
    __table_args__ = (
        CheckConstraint(
            "total_score IS NULL OR total_score >= 0",
            name="total_score_non_negative",
        ),
        CheckConstraint(
            "total_time IS NULL OR total_time >= 0",
            name="total_time_non_negative",
        ),
        Index("idx_match_participants_user_joined", "user_id", "joined_at"),
    )

    match_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("matches.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    total_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
