from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, SmallInteger, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base


class QuestionAnswer(Base):
    """Correct option of a question, kept out of the ``questions`` table."""

    __tablename__ = "question_answers"
    __table_args__ = (
        CheckConstraint(
            "correct_option >= 1 AND correct_option <= 4",
            name="correct_option_range",
        ),
    )

    question_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    correct_option: Mapped[int] = mapped_column(SmallInteger, nullable=False)
