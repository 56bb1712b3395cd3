"""Crate API — application factory wiring routers, middleware and error handlers.

Invariants:
    - Every router is registered here by name; nothing is discovered at import time
    - The database engine exists only between lifespan startup and shutdown
    - Allowed CORS origins come from settings

Design Decisions:
    - Module-level app built by create_app(): uvicorn imports crate_api.main:app,
      tests reuse the same object and override get_db
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crate_api.api.error_handlers import register_error_handlers
from crate_api.api.routes import collections, entity, files, health, onedrive
from crate_api.config import get_settings
from crate_api.infrastructure.database import close_db, init_db
from crate_api.infrastructure.observability import log_requests, setup_logging

logger = logging.getLogger(__name__)

ROUTERS = (health, collections, entity, files, onedrive)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
    )
    logger.info(
        f"Crate API ready (crate sync {'on' if settings.crate_sync_enabled else 'off'})",
    )
    try:
        yield
    finally:
        await close_db()
        logger.info("Crate API stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(title="Crate API", version="1.0.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.middleware("http")(log_requests)
    for module in ROUTERS:
        application.include_router(module.router)
    register_error_handlers(application)
    return application


app = create_app()
