from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, UTCDateTime


class MatchResult(Base):
    __tablename__ = "match_results"
    __table_args__ = (
        CheckConstraint(
            "(is_draw AND winner_id IS NULL) OR (NOT is_draw AND winner_id IS NOT NULL)",
            name="winner_or_draw",
        ),
        CheckConstraint("player1_id <> player2_id", name="no_self_match"),
        Index("idx_match_results_players", "player1_id", "player2_id"),
    )

    # One result per match; the primary key doubles as the completion guard.
    match_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("matches.id", ondelete="CASCADE"),
        primary_key=True,
    )
    player1_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    player1_score: Mapped[int] = mapped_column(Integer, nullable=False)
    player1_time: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    player2_score: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_time: Mapped[int] = mapped_column(Integer, nullable=False)
    winner_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("profiles.id"), nullable=True
    )
    is_draw: Mapped[bool] = mapped_column(Boolean, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
