from __future__ import annotations

from quizduel.workers.asyncio_runner import run_async_job
from quizduel.workers.celery_app import celery_app
from quizduel.workers.tasks.match_expiry_async import (
    run_match_expiry_sweep_async as _run_match_expiry_sweep_async,
)
from quizduel.workers.tasks.match_expiry_schedule import configure_match_expiry_schedule

run_match_expiry_sweep_async = _run_match_expiry_sweep_async

__all__ = ["run_match_expiry_sweep", "run_match_expiry_sweep_async"]


@celery_app.task(name="quizduel.workers.tasks.match_expiry.run_match_expiry_sweep")
def run_match_expiry_sweep(batch_size: int | None = None) -> dict[str, int]:
    return run_async_job(run_match_expiry_sweep_async(batch_size=batch_size))


configure_match_expiry_schedule(celery_app)
