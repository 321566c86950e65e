"""FastAPI application factory and lifespan management."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dtbooking import __version__
from dtbooking.config import settings
from dtbooking.db.engine import create_db_engine, create_session_factory
from dtbooking.logging_config import configure_logging
from dtbooking.notifications.mailer import SmtpMailer
from dtbooking.notifications.push import OneSignalPushSender
from dtbooking.notifications.sms import HttpSmsSender

# Configure logging at import time
_json_logs = os.environ.get("DTBOOKING_LOCAL", "0") != "1"
configure_logging(log_level=settings.log_level, json_output=_json_logs)

logger = logging.getLogger(__name__)


def install_notifiers(app: FastAPI) -> None:
    """Attach the production notification transports to app state."""
    app.state.mailer = SmtpMailer()
    app.state.push_sender = OneSignalPushSender()
    app.state.sms_sender = HttpSmsSender()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)

    # Auto-create tables for SQLite (local dev, no migrations)
    if "sqlite" in db_url:
        from dtbooking.db.base import Base
        import dtbooking.db.models  # noqa: F401 (registers all ORM models)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)

    if not app.state.push_sender.configured:
        logger.warning("Push gateway credentials missing for app_env=%s", settings.app_env)
    if not app.state.sms_sender.configured:
        logger.warning("SMS gateway credentials missing, SMS notifications disabled")

    logger.info("Booking API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    await engine.dispose()
    logger.info("Booking API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="DigitalTolk Booking API",
        version=__version__,
        description="Interpreter booking: translator matching, job lifecycle and notifications.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add middleware (order matters: last added = first executed)
    from dtbooking.api.middleware.trace_id import TraceIdMiddleware
    from dtbooking.api.middleware.auth import AuthMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    from dtbooking.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    install_notifiers(app)

    from dtbooking.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
