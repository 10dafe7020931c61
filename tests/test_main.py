"""Tests for component wiring and the FastAPI lifespan."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from p2p_monitor.dashboard.app import create_dashboard_app
from p2p_monitor.main import _build_components, lifespan
from p2p_monitor.scheduler import SamplingScheduler


def _app(settings, quote_source):
    with patch("p2p_monitor.main.BybitP2PClient", return_value=quote_source):
        components = _build_components(settings)
    app = create_dashboard_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components
    return app


def test_build_components(mock_settings) -> None:
    components = _build_components(mock_settings)

    assert isinstance(components["scheduler"], SamplingScheduler)
    assert components["history"].capacity == mock_settings.sampling.history_capacity
    assert not components["database"].is_connected


def test_lifespan_flushes_and_restores_history(mock_settings, quote_source) -> None:
    mock_settings.sampling.interval_seconds = 60.0

    with TestClient(_app(mock_settings, quote_source)) as client:
        client.post("/api/monitoring/start", json={"minAmount": 5000})
        assert client.get("/api/monitoring/status").json()["records_count"] == 1

    quote_source.connect.assert_awaited_once()
    quote_source.close.assert_awaited_once()

    # a fresh process picks up the snapshot written at shutdown
    with TestClient(_app(mock_settings, quote_source)) as client:
        status = client.get("/api/monitoring/status").json()
        assert status["records_count"] == 1
        assert status["is_active"] is False


def test_autostart(mock_settings, quote_source) -> None:
    mock_settings.sampling.interval_seconds = 60.0
    mock_settings.sampling.autostart = True

    with TestClient(_app(mock_settings, quote_source)) as client:
        status = client.get("/api/monitoring/status").json()
        assert status["is_active"] is True
        assert status["min_amount"] == mock_settings.sampling.default_min_amount
