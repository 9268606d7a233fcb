from __future__ import annotations

from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base


class QuestionCategory(Base):
    __tablename__ = "question_categories"
    __table_args__ = (Index("idx_question_categories_category", "category_id"),)

    question_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    )
