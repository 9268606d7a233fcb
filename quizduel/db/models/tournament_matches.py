from __future__ import annotations

from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base


class TournamentMatch(Base):
    __tablename__ = "tournament_matches"
    __table_args__ = (
        CheckConstraint("round IN ('semi1','semi2','final')", name="round"),
        CheckConstraint(
            "status IN ('active','completed','cancelled')",
            name="status",
        ),
        CheckConstraint("player1_id <> player2_id", name="no_self_pair"),
        # At most one row per bracket slot; a second final can never be inserted.
        UniqueConstraint("tournament_id", "round", name="uq_tournament_matches_tournament_round"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    tournament_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    round: Mapped[str] = mapped_column(String(8), nullable=False)
    match_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("matches.id"), unique=True, nullable=False
    )
    player1_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    player2_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    winner_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("profiles.id"), nullable=True
    )
