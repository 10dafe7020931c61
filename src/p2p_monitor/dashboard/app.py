"""FastAPI application factory for the monitoring JSON API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from p2p_monitor.dashboard.routes import actions, api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        FastAPI application with monitoring control and reporting routes.
        Route handlers expect app.state.scheduler and app.state.settings.
    """
    app = FastAPI(
        title="P2P Quote Monitor",
        lifespan=lifespan,
    )

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/api")

    return app
