from __future__ import annotations

from datetime import datetime, timezone

import structlog

from quizduel.core.config import get_settings
from quizduel.db.session import SessionLocal
from quizduel.game.matches.expiry import (
    expire_match,
    list_due_expired_match_ids,
    list_due_expired_tournament_ids,
)
from quizduel.game.matches.types import ExpirySweepResult
from quizduel.game.tournaments.manage import expire_waiting_tournament

logger = structlog.get_logger("quizduel.workers.tasks.match_expiry")


async def run_match_expiry_sweep_async(
    *,
    batch_size: int | None = None,
    now_utc: datetime | None = None,
) -> dict[str, int]:
    resolved_now = now_utc or datetime.now(timezone.utc)
    resolved_batch_size = max(1, int(batch_size or get_settings().expiry_sweep_batch_size))
    result = ExpirySweepResult()

    async with SessionLocal.begin() as session:
        match_ids = await list_due_expired_match_ids(
            session,
            now_utc=resolved_now,
            limit=resolved_batch_size,
        )
        tournament_ids = await list_due_expired_tournament_ids(
            session,
            now_utc=resolved_now,
            limit=resolved_batch_size,
        )

    # One transaction per match: a failing cancellation must not roll back the others.
    for match_id in match_ids:
        result.matches_examined += 1
        try:
            async with SessionLocal.begin() as session:
                cancelled = await expire_match(session, match_id=match_id, now_utc=resolved_now)
        except Exception:
            result.matches_failed += 1
            logger.exception("match_expiry_failed", match_id=str(match_id))
            continue
        if cancelled:
            result.matches_cancelled += 1

    for tournament_id in tournament_ids:
        try:
            async with SessionLocal.begin() as session:
                cancelled = await expire_waiting_tournament(
                    session,
                    tournament_id=tournament_id,
                    now_utc=resolved_now,
                )
        except Exception:
            logger.exception("tournament_expiry_failed", tournament_id=str(tournament_id))
            continue
        if cancelled:
            result.tournaments_cancelled += 1

    fields = result.as_log_fields()
    logger.info("match_expiry_sweep_processed", batch_size=resolved_batch_size, **fields)
    return fields
