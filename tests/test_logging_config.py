from __future__ import annotations

import structlog

from quizduel.core.logging import configure_logging


def test_configure_logging_tags_events_with_logger_name_and_env() -> None:
    try:
        configure_logging("debug", app_env="staging")
        processors = structlog.get_config()["processors"]
        assert structlog.stdlib.add_logger_name in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

        bind_env = processors[3]
        event = bind_env(None, "info", {"event": "match_joined"})
        assert event == {"event": "match_joined", "app_env": "staging"}
    finally:
        structlog.reset_defaults()
