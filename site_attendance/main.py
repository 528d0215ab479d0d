"""
Site Attendance: application entry point.

This is the **only** file that assembles the app.  The calculation
engine lives in `services/`; I/O collaborators in `repositories/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from site_attendance.api.v1.api import api_router
from site_attendance.core.config import settings
from site_attendance.core.exceptions import register_exception_handlers
from site_attendance.db.base import Base
from site_attendance.db.session import engine

# Ensure all models are imported so metadata.create_all can see them
from site_attendance.models.directory_user import DirectoryUser  # noqa: F401
from site_attendance.models.site import Site  # noqa: F401
from site_attendance.models.work_session import WorkSession  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    logger.info(
        "%s v%s started (tz=%s, round=%d/%s, break policy %s)",
        settings.PROJECT_NAME,
        settings.VERSION,
        settings.TIMEZONE,
        settings.TIME_CALC_ROUND_MINUTES,
        settings.TIME_CALC_ROUND_MODE,
        "on" if settings.ENABLE_BREAK_POLICY else "off",
    )
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Construction-site attendance aggregation",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()
