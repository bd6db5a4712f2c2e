"""Entry point for the Reservation Engine FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reservation_engine import models  # noqa: F401  registers tables on Base.metadata
from reservation_engine.api.v1 import router as v1_router
from reservation_engine.core.config import settings
from reservation_engine.core.database import Base, engine
from reservation_engine.core.error_handlers import register_exception_handlers
from reservation_engine.core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema migrations are out of scope; create missing tables in development.
    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

register_exception_handlers(app)

app.include_router(v1_router, prefix=settings.API_PREFIX)
