from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, BigIntPK, UTCDateTime


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("points >= 0", name="points_non_negative"),
        CheckConstraint(
            "correct_answers_total >= 0",
            name="correct_answers_total_non_negative",
        ),
        Index("idx_profiles_points", "points"),
        Index("idx_profiles_referred_by", "referred_by_user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    points: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    correct_answers_total: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    referral_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    referred_by_user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("profiles.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
