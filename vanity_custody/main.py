"""Vanity Custody API: FastAPI application that hosts the core services.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map VanityError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and service container initialized on startup via lifespan,
      released on shutdown

Design Decisions:
    - Lifespan over @app.on_event
    - Services exposed on app.state.services for the HTTP layer's routers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vanity_custody.api.error_handlers import register_error_handlers
from vanity_custody.api.routes import health
from vanity_custody.config import get_settings
from vanity_custody.infrastructure.database import init_db
from vanity_custody.infrastructure.observability import setup_logging
from vanity_custody.services.container import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.services = build_services(settings, manager)
    logger.info("Vanity custody API started")
    yield
    logger.info("Vanity custody API shutting down")
    await app.state.services.aclose()
    await manager.dispose()


app = FastAPI(
    title="Vanity Custody API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
register_error_handlers(app)
