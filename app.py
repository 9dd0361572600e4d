"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn. It wires all
services, registers routers and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.auth_controller import router as auth_router
from backend.controllers.event_controller import router as event_router
from backend.controllers.schedule_controller import router as schedule_router
from backend.repository.data_repository import DataRepository
from backend.services.attendance_service import AttendanceService
from backend.services.auth_service import AuthService
from backend.services.event_service import EventService
from backend.services.scheduling_service import GameScheduleService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service is created here and exposed through app.state, so each
    dependency is traceable from this function.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    schedule_service = GameScheduleService(repository=repository, settings=settings)
    event_service = EventService(
        repository=repository,
        settings=settings,
        schedule_service=schedule_service,
    )
    attendance_service = AttendanceService(
        repository=repository,
        settings=settings,
        config=schedule_service.config,
    )
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(auth_router)
    app.include_router(event_router)
    app.include_router(schedule_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.schedule_service = schedule_service
    app.state.event_service = event_service
    app.state.attendance_service = attendance_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Order matters:
      1. Schema must exist before seeding.
      2. Suggestions are recomputed last so they reflect the stored votes.
    """
    repository: DataRepository = app.state.repository
    schedule_service: GameScheduleService = app.state.schedule_service

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo event (skipped if Events table not empty)")
        repository.seed_demo_data()

    logger.info("Startup: recalculating suggested game schedules")
    for event_id in repository.list_event_ids():
        schedule_service.recalculate(event_id)

    logger.info("Startup complete | events=%s", len(repository.list_event_ids()))


# Module-level app object for uvicorn
app = create_app()
