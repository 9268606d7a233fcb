from __future__ import annotations

from datetime import datetime, timedelta, timezone

from quizduel.economy.quota.rules import (
    QUOTA_WINDOW,
    is_exhausted,
    resolve_limit,
    resolve_reset_at,
    window_start,
)
from quizduel.economy.quota.types import QuotaKind, QuotaSnapshot

UTC = timezone.utc


def test_window_is_rolling_24_hours() -> None:
    now_utc = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
    assert QUOTA_WINDOW == timedelta(hours=24)
    assert window_start(now_utc) == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def test_limit_adds_bonus_column_for_kind() -> None:
    bonuses = [(1, 2), (3, 0)]

    assert resolve_limit(kind=QuotaKind.MATCH, base_limit=5, active_bonuses=bonuses) == 9
    assert resolve_limit(kind=QuotaKind.TOURNAMENT, base_limit=1, active_bonuses=bonuses) == 3


def test_limit_ignores_negative_values() -> None:
    assert resolve_limit(kind=QuotaKind.MATCH, base_limit=-1, active_bonuses=[(-4, 0)]) == 0


def test_reset_at_follows_oldest_counted_row() -> None:
    oldest = datetime(2026, 3, 2, 8, 30, tzinfo=UTC)
    assert resolve_reset_at(oldest) == datetime(2026, 3, 3, 8, 30, tzinfo=UTC)
    assert resolve_reset_at(None) is None


def test_exhausted_at_limit() -> None:
    assert is_exhausted(used=4, limit=5) is False
    assert is_exhausted(used=5, limit=5) is True
    assert is_exhausted(used=0, limit=0) is True


def test_snapshot_remaining_never_negative() -> None:
    snapshot = QuotaSnapshot(kind=QuotaKind.MATCH, used=7, limit=5, reset_at=None)
    assert snapshot.remaining == 0
