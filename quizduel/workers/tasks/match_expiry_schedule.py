from __future__ import annotations

from quizduel.core.config import get_settings


def configure_match_expiry_schedule(celery_app) -> None:
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "match-expiry-sweep": {
                "task": "quizduel.workers.tasks.match_expiry.run_match_expiry_sweep",
                "schedule": float(get_settings().expiry_sweep_interval_seconds),
                "options": {"queue": "q_normal"},
            }
        }
    )
