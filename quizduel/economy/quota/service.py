from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.core.config import get_settings
from quizduel.db.repo.matches_repo import MatchesRepo
from quizduel.db.repo.purchases_repo import PurchasesRepo
from quizduel.db.repo.tournaments_repo import TournamentsRepo
from quizduel.economy.quota.rules import is_exhausted, resolve_limit, resolve_reset_at, window_start
from quizduel.economy.quota.types import QuotaKind, QuotaSnapshot
from quizduel.game.errors import QuotaExceededError

STADIUM_ITEM_TYPE = "stadium"
_CANCELLED_STATUS = "cancelled"

logger = structlog.get_logger(__name__)


def _base_limit(kind: QuotaKind) -> int:
    settings = get_settings()
    if kind is QuotaKind.MATCH:
        return int(settings.match_daily_limit)
    return int(settings.tournament_daily_limit)


async def get_remaining_quota(
    session: AsyncSession,
    *,
    user_id: int,
    kind: QuotaKind,
    now_utc: datetime,
) -> QuotaSnapshot:
    since_utc = window_start(now_utc)
    repo = MatchesRepo if kind is QuotaKind.MATCH else TournamentsRepo
    used, oldest_created_at = await repo.count_created_since(
        session,
        creator_id=user_id,
        since_utc=since_utc,
        excluded_statuses=(_CANCELLED_STATUS,),
    )
    bonuses = await PurchasesRepo.list_active_bonuses(
        session,
        user_id=user_id,
        item_type=STADIUM_ITEM_TYPE,
        now_utc=now_utc,
    )
    return QuotaSnapshot(
        kind=kind,
        used=used,
        limit=resolve_limit(kind=kind, base_limit=_base_limit(kind), active_bonuses=bonuses),
        reset_at=resolve_reset_at(oldest_created_at),
    )


async def ensure_quota_available(
    session: AsyncSession,
    *,
    user_id: int,
    kind: QuotaKind,
    now_utc: datetime,
) -> QuotaSnapshot:
    snapshot = await get_remaining_quota(session, user_id=user_id, kind=kind, now_utc=now_utc)
    if is_exhausted(used=snapshot.used, limit=snapshot.limit):
        logger.info(
            "quota_exceeded",
            user_id=user_id,
            kind=kind.value,
            used=snapshot.used,
            limit=snapshot.limit,
        )
        raise QuotaExceededError(kind=kind.value, limit=snapshot.limit, used=snapshot.used)
    return snapshot
