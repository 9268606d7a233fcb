from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, BigIntPK, UTCDateTime


class MatchAnswer(Base):
    __tablename__ = "match_answers"
    __table_args__ = (
        UniqueConstraint(
            "match_id",
            "user_id",
            "question_id",
            name="uq_match_answers_match_user_question",
        ),
        CheckConstraint(
            "selected_answer >= 0 AND selected_answer <= 4",
            name="selected_answer_range",
        ),
        CheckConstraint("time_spent >= 0", name="time_spent_non_negative"),
        Index("idx_match_answers_match_user_position", "match_id", "user_id", "position"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    match_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    question_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("questions.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    selected_answer: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
