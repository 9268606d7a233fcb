from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.purchases import Purchase
from quizduel.db.models.store_items import StoreItem


class PurchasesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, purchase: Purchase) -> Purchase:
        session.add(purchase)
        await session.flush()
        return purchase

    @staticmethod
    async def list_active_bonuses(
        session: AsyncSession,
        *,
        user_id: int,
        item_type: str,
        now_utc: datetime,
    ) -> list[tuple[int, int]]:
        """Returns (matches_bonus, tournaments_bonus) for each purchase still in effect."""
        stmt = (
            select(
                Purchase.purchased_at,
                Purchase.duration_seconds,
                StoreItem.matches_bonus,
                StoreItem.tournaments_bonus,
            )
            .join(StoreItem, StoreItem.id == Purchase.item_id)
            .where(
                Purchase.user_id == user_id,
                StoreItem.item_type == item_type,
                Purchase.purchased_at <= now_utc,
            )
        )
        result = await session.execute(stmt)
        bonuses: list[tuple[int, int]] = []
        for purchased_at, duration_seconds, matches_bonus, tournaments_bonus in result.all():
            duration = int(duration_seconds)
            if duration > 0 and purchased_at + timedelta(seconds=duration) <= now_utc:
                continue
            bonuses.append((int(matches_bonus), int(tournaments_bonus)))
        return bonuses
