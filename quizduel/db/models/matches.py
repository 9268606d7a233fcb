from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, UTCDateTime


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint(
            "status IN ('waiting','active','completed','cancelled')",
            name="status",
        ),
        CheckConstraint(
            "current_question_index IS NULL OR current_question_index >= 0",
            name="current_question_index_non_negative",
        ),
        Index("idx_matches_status_expires", "status", "expires_at"),
        Index("idx_matches_creator_created", "creator_id", "created_at"),
        Index("idx_matches_status_private_created", "status", "is_private", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    question_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    creator_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("profiles.id"), nullable=True
    )
    category_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("categories.id"), nullable=True
    )
    is_private: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    join_code: Mapped[str | None] = mapped_column(String(16), unique=True, nullable=True)
    current_question_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
