"""
BarberQueue API - Main FastAPI application.

Walk-in and online queue for a single barber shop, plus revenue analytics.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from barberqueue.config import get_settings
from barberqueue.database import create_engine_from_settings, init_db
from barberqueue.errors import ConflictError, NotFoundError, QueueError, ValidationError
from barberqueue.services.admin_session import AdminSession
from barberqueue.services.notifications import LoggingNotificationSink, QueueNotificationWatcher
from barberqueue.services.queue_engine import QueueEngine
from barberqueue.store.base import OrderedStore
from barberqueue.store.memory import MemoryStore

settings = get_settings()

logger = logging.getLogger("barberqueue")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _build_store() -> OrderedStore:
    """Create the store configured in settings."""
    if settings.store_backend == "memory":
        logger.info("Using in-memory store")
        return MemoryStore()

    from barberqueue.store.sql import SqlStore

    engine = create_engine_from_settings()
    await init_db(engine)
    logger.info("Database initialized.")
    return SqlStore(engine)


def error_status(exc: QueueError) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, NotFoundError):
        return 404
    return 400


def create_app(
    store: Optional[OrderedStore] = None,
    clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        store: Store to use instead of the configured one (tests)
        clock: Millisecond clock for the queue engine (tests)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.
        Runs on startup and shutdown.
        """
        # Startup
        configure_logging(settings.log_level)
        logger.info("Starting %s in %s mode...", settings.app_name, settings.app_env)

        app_store = store or await _build_store()
        engine = QueueEngine(app_store, clock) if clock else QueueEngine(app_store)
        admin_session = AdminSession()

        app.state.store = app_store
        app.state.engine = engine
        app.state.admin_session = admin_session

        # Staff alerts from this process go to the log
        watcher = QueueNotificationWatcher(LoggingNotificationSink(), admin_session=admin_session)
        unsubscribe_watcher = await engine.subscribe_active(watcher)

        yield

        # Shutdown
        logger.info("Shutting down...")
        unsubscribe_watcher()
        if store is None:
            await app_store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Walk-in and online queue for a barber shop",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware - allow frontend apps to connect
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(QueueError)
    async def queue_error_handler(request: Request, exc: QueueError):
        return JSONResponse(status_code=error_status(exc), content={"detail": exc.to_dict()})

    @app.get("/")
    async def root():
        """Root endpoint - basic health check."""
        return {
            "app": settings.app_name,
            "version": "0.1.0",
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy"}

    # Routers
    from barberqueue.routers import admin, analytics, devices, queue

    app.include_router(queue.router, prefix="/api/queue", tags=["Queue"])
    app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
    app.include_router(devices.router, prefix="/api/devices", tags=["Devices"])

    return app


app = create_app()
