"""Tests for log setup and context binding."""

import logging

import pytest
import structlog

from p2p_monitor.logging import get_logger, setup_logging, tick_context


@pytest.fixture
def restore_logging():
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


def test_tick_context_binds_and_unbinds() -> None:
    with tick_context(7, 5000, None):
        bound = structlog.contextvars.get_contextvars()
        assert bound == {"tick": 7, "min_amount": 5000, "bank": "all"}

    assert "tick" not in structlog.contextvars.get_contextvars()


def test_setup_logging_json(capsys, restore_logging) -> None:
    setup_logging("INFO", "json")
    get_logger("p2p_monitor.test").info("sample_recorded", hour=9)

    err = capsys.readouterr().err
    assert '"event": "sample_recorded"' in err
    assert '"hour": 9' in err


def test_setup_logging_quiets_access_logs(restore_logging) -> None:
    setup_logging("DEBUG")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
