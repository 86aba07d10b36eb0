"""
FastAPI application for the cylinder fuel monitor.

Run with ``python -m cylinder_monitor.main`` or
``uvicorn cylinder_monitor.main:create_app --factory``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cylinder_monitor.logger_config import setup_logging
from cylinder_monitor.orchestrators import MonitorOrchestrator
from cylinder_monitor.routers import (
    consumption_router,
    cylinders_router,
    health_router,
    measurements_router,
)
from cylinder_monitor.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[MonitorOrchestrator] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings instance, defaults to the global settings
        orchestrator: Pre-built orchestrator (tests inject one over SQLite)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown of the orchestrator."""
        monitor = orchestrator or MonitorOrchestrator(settings)
        app.state.orchestrator = monitor
        await monitor.startup()
        logger.info(f"{settings.api.title} v{settings.api.version} ready")

        yield  # App runs here

        logger.info(f"Shutting down {settings.api.title}")
        await monitor.shutdown()

    app = FastAPI(
        title=settings.api.title,
        version=settings.api.version,
        description="Fuel level, outlier-corrected measurements and consumption for gas cylinders",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )

    for router in (cylinders_router, measurements_router, consumption_router, health_router):
        app.include_router(router, prefix=settings.api.prefix)

    return app


if __name__ == "__main__":
    import uvicorn

    app_settings = get_settings()
    setup_logging(
        level=app_settings.logging.level,
        log_to_file=app_settings.logging.log_to_file,
        logs_dir=app_settings.logging.logs_dir,
    )
    uvicorn.run(create_app(app_settings), host=app_settings.api.host, port=app_settings.api.port)
