"""
TASKCAL Core API - Main Application

Backend for the task calendar: task CRUD plus calendar range, grouping and
reschedule endpoints.
"""

import logging
import warnings
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskcal.config import settings
from taskcal.database import database
from taskcal.tasks import tasks_router
from taskcal.calendar import calendar_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def validate_config() -> None:
    """
    Warn about configuration that would misbehave at runtime.

    Does not crash the application so tests and development keep running.
    """
    if not 0 <= settings.WEEK_START_DAY <= 6:
        warnings.warn(
            f"WEEK_START_DAY={settings.WEEK_START_DAY} is outside 0-6; calendar week queries will be rejected.",
            UserWarning,
        )
    if settings.AGENDA_LOOKAHEAD_DAYS < 1:
        warnings.warn(
            f"AGENDA_LOOKAHEAD_DAYS={settings.AGENDA_LOOKAHEAD_DAYS} must be at least 1.",
            UserWarning,
        )
    if "*" in settings.CORS_ORIGINS and settings.is_production:
        warnings.warn(
            "CORS wildcard (*) configured in production. Set specific origins via CORS_ORIGINS.",
            UserWarning,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    validate_config()
    await database.connect()
    await database.ensure_indexes()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")

    yield

    await database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Task calendar: ranges, date grouping, filtering and rescheduling",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["X-Owner-Id", "Content-Type"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Service status and version, for container health checks."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


app.include_router(tasks_router)
app.include_router(calendar_router)
