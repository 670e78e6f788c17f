from __future__ import annotations

import structlog

from app.logging import bound_log_context, get_logger


def test_get_logger_configures_structlog_when_needed() -> None:
    structlog.reset_defaults()
    assert not structlog.is_configured()

    logger = get_logger("unit-test-logger")

    assert structlog.is_configured()
    logger.info("Logging setup check.")


def test_bound_log_context_is_reset_after_the_block() -> None:
    structlog.contextvars.clear_contextvars()

    with bound_log_context(run_id="run-1", mes_referencia="2025-06"):
        assert structlog.contextvars.get_contextvars() == {"run_id": "run-1", "mes_referencia": "2025-06"}

    assert structlog.contextvars.get_contextvars() == {}
