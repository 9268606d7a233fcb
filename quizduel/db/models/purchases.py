from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from quizduel.db.models.base import Base, BigIntPK, UTCDateTime


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint("duration_seconds >= 0", name="duration_non_negative"),
        Index("idx_purchases_user_purchased", "user_id", "purchased_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("profiles.id"), nullable=False)
    item_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("store_items.id"), nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    # Copied from the item at purchase time; 0 means the purchase never lapses.
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
