"""Urgent Dispatch — FastAPI application factory."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.persistence.database import async_session_factory, engine
from app.config import settings
from app.infrastructure.api.dependencies import build_redispatch
from app.infrastructure.api.error_handlers import register_error_handlers
from app.infrastructure.api.routes_analytics import router as analytics_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_pricing import router as pricing_router
from app.infrastructure.api.routes_professional import router as professional_router
from app.infrastructure.api.routes_urgent import router as urgent_router
from app.infrastructure.scheduler.redispatch_sweeper import RedispatchSweeper

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)

    sweeper_task = None
    if settings.sweep_enabled:
        sweeper = RedispatchSweeper(
            session_factory=async_session_factory,
            build_redispatch=build_redispatch,
            window_seconds=settings.redispatch_window_seconds,
            interval_seconds=settings.sweep_interval_seconds,
        )
        sweeper_task = asyncio.create_task(sweeper.run_forever())

    yield

    if sweeper_task is not None:
        sweeper_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper_task
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Urgent Dispatch — on-demand professional assignment",
        description="Pricing, geospatial dispatch and race-safe assignment of urgent service requests",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(urgent_router, prefix="/api")
    app.include_router(pricing_router, prefix="/api")
    app.include_router(professional_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")

    return app


app = create_app()
