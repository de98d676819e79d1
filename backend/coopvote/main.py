"""CoopVote API — application factory and ASGI entry point (`coopvote.main:app`).

Invariants:
    - Routers registered explicitly, health first
    - Error handlers installed before the first request (api/error_handlers.py)
    - Engine created in the lifespan and disposed on shutdown; importing this
      module opens no connections
    - CORS admits only the identity headers the API actually reads

Design Decisions:
    - create_app() over a bare module global so tests and scripts can build an
      app with their own Settings; `app` stays for uvicorn
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coopvote import __version__
from coopvote.api.error_handlers import register_error_handlers
from coopvote.api.routes import health, members, resolutions
from coopvote.config import Settings, get_settings
from coopvote.infrastructure import database
from coopvote.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)

IDENTITY_HEADERS = [
    "X-Member-Id", "X-Member-Name", "X-Member-Role", "X-Scope-Id",
    "X-Access-Token", "Content-Type",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"CoopVote API {__version__} ready")
    try:
        yield
    finally:
        if database.db_manager is not None:
            await database.db_manager.dispose()
        logger.info("CoopVote API stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="CoopVote API", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=IDENTITY_HEADERS,
        expose_headers=["Retry-After"],
    )

    for module in (health, resolutions, members):
        app.include_router(module.router)

    register_error_handlers(app)
    return app


app = create_app()
