from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, UTCDateTime


class TournamentParticipant(Base):
    __tablename__ = "tournament_participants"
    __table_args__ = (Index("idx_tournament_participants_user", "user_id"),)

    tournament_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
