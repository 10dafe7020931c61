"""Entry point for the P2P quote monitor.

Wires all components together, optionally embeds the FastAPI API, and
runs the sampling scheduler. When the API is enabled (default) the
scheduler and the HTTP server share one asyncio event loop via uvicorn's
programmatic API and FastAPI's lifespan context manager.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. BybitP2PClient (quote source)
4. HistoryStore (bounded sample history)
5. HourlyAggregator (per-hour statistics)
6. StrategyAnalyzer (cross-hour ranking)
7. SampleDatabase + SampleStore (snapshot persistence)
8. SamplingScheduler (timer, tick, persistence cadence)
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from p2p_monitor.analytics.hourly import HourlyAggregator
from p2p_monitor.analytics.strategy import StrategyAnalyzer
from p2p_monitor.config import AppSettings
from p2p_monitor.data.database import SampleDatabase
from p2p_monitor.data.history import HistoryStore
from p2p_monitor.data.store import SampleStore
from p2p_monitor.exchange.bybit_p2p_client import BybitP2PClient
from p2p_monitor.logging import get_logger, setup_logging
from p2p_monitor.scheduler import SamplingScheduler


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all monitor components from settings.

    Does NOT open the HTTP session or the database -- that happens in
    _startup() so both the API and headless modes share it.
    """
    quote_source = BybitP2PClient(settings.marketplace)
    history = HistoryStore(settings.sampling.history_capacity)
    aggregator = HourlyAggregator()
    analyzer = StrategyAnalyzer(settings.analysis)
    database = SampleDatabase(settings.storage.db_path)
    store = SampleStore(database)

    scheduler = SamplingScheduler(
        quote_source=quote_source,
        history=history,
        aggregator=aggregator,
        analyzer=analyzer,
        store=store,
        settings=settings.sampling,
    )

    return {
        "quote_source": quote_source,
        "history": history,
        "aggregator": aggregator,
        "analyzer": analyzer,
        "database": database,
        "store": store,
        "scheduler": scheduler,
    }


async def _startup(settings: AppSettings, components: dict[str, Any]) -> None:
    """Open resources, restore the persisted history, optionally autostart."""
    await components["database"].connect()
    await components["quote_source"].connect()
    await components["scheduler"].restore()

    if settings.sampling.autostart:
        await components["scheduler"].start(
            settings.sampling.default_min_amount,
            settings.sampling.default_bank,
        )


async def _shutdown(components: dict[str, Any]) -> None:
    """Stop sampling, flush the snapshot, release resources."""
    await components["scheduler"].shutdown()
    await components["quote_source"].close()
    await components["database"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application."""
    logger = get_logger("p2p_monitor.main")
    settings = app.state.settings
    components = app.state.components

    app.state.scheduler = components["scheduler"]

    await _startup(settings, components)
    logger.info("lifespan_started", autostart=settings.sampling.autostart)

    yield

    await _shutdown(components)
    logger.info("p2p_monitor_stopped")


async def _run_headless(settings: AppSettings, components: dict[str, Any]) -> None:
    """Sample with the configured defaults until SIGINT/SIGTERM."""
    logger = get_logger("p2p_monitor.main")
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    await _startup(settings, components)
    try:
        if not settings.sampling.autostart:
            await components["scheduler"].start(
                settings.sampling.default_min_amount,
                settings.sampling.default_bank,
            )
        await stop_requested.wait()
        logger.info("graceful_shutdown_signal")
    finally:
        await _shutdown(components)
        logger.info("p2p_monitor_stopped")


async def run() -> None:
    """Run the P2P quote monitor.

    With DASHBOARD_ENABLED=true (default) sampling is controlled through
    the HTTP API; with it disabled sampling starts immediately with the
    SAMPLING_ defaults.
    """
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("p2p_monitor.main")

    components = _build_components(settings)

    if settings.dashboard.enabled:
        from p2p_monitor.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        logger.info(
            "starting_headless",
            min_amount=settings.sampling.default_min_amount,
            interval=settings.sampling.interval_seconds,
        )
        await _run_headless(settings, components)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
