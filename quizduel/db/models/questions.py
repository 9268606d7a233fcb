from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Integer, SmallInteger, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, UTCDateTime


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint("grade >= 1 AND grade <= 5", name="grade_range"),
        CheckConstraint("time_to_respond > 0", name="time_to_respond_positive"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    media_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    option_1_text: Mapped[str] = mapped_column(Text, nullable=False)
    option_2_text: Mapped[str] = mapped_column(Text, nullable=False)
    option_3_text: Mapped[str] = mapped_column(Text, nullable=False)
    option_4_text: Mapped[str] = mapped_column(Text, nullable=False)
    time_to_respond: Mapped[int] = mapped_column(Integer, nullable=False)
    grade: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
