from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from quizduel.economy.quota.types import QuotaKind

QUOTA_WINDOW = timedelta(hours=24)


def window_start(now_utc: datetime) -> datetime:
    return now_utc - QUOTA_WINDOW


def resolve_limit(
    *,
    kind: QuotaKind,
    base_limit: int,
    active_bonuses: Iterable[tuple[int, int]],
) -> int:
    bonus_index = 0 if kind is QuotaKind.MATCH else 1
    return max(0, int(base_limit)) + sum(max(0, int(bonus[bonus_index])) for bonus in active_bonuses)


def resolve_reset_at(oldest_created_at: datetime | None) -> datetime | None:
    if oldest_created_at is None:
        return None
    return oldest_created_at + QUOTA_WINDOW


def is_exhausted(*, used: int, limit: int) -> bool:
    return used >= limit
