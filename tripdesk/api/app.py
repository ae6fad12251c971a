"""
FastAPI application factory.

* Registers routes for trips, statuses, hierarchy and admin.
* Builds the ``Database`` store (and the optional Redis catalog cache) once
  per app and hands it to services through dependencies.
* Maps domain errors to ``{"success": false, "error": ...}`` responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tripdesk.api.middleware import limiter
from tripdesk.api.routes import admin, hierarchy, statuses, trips
from tripdesk.config import settings
from tripdesk.domain.errors import (
    Conflict,
    InvalidState,
    NotFound,
    StorageError,
    TripDeskError,
    Unauthorized,
)
from tripdesk.infrastructure.cache import CatalogCache
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.migrations import upgrade_to_head

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NotFound: 404,
    Conflict: 409,
    InvalidState: 422,
    Unauthorized: 403,
    StorageError: 503,
}


async def _domain_error_handler(request: Request, exc: TripDeskError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS_CODES.items() if isinstance(exc, cls)),
        400,
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.message},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply pending migrations on startup (if enabled); release the pool on shutdown."""
    if settings.run_migrations_on_startup:
        await asyncio.to_thread(upgrade_to_head, settings.database_url_sync)
        logger.info("Schema migrated to head")
    yield
    await app.state.database.dispose()


def create_app(
    database: Optional[Database] = None,
    catalog_cache: Optional[CatalogCache] = None,
) -> FastAPI:
    if database is None:
        database = Database.from_settings(settings)
        if catalog_cache is None and settings.catalog_cache_enabled:
            from tripdesk.infrastructure.redis_client import get_redis

            catalog_cache = CatalogCache(
                get_redis(), ttl_seconds=settings.catalog_cache_ttl_seconds
            )

    app = FastAPI(
        title="TripDesk Dispatch API",
        description=(
            "Dispatches and tracks transportation trips across a hierarchy of "
            "regions, venues and locations, with an auditable status history."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.catalog_cache = catalog_cache

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(TripDeskError, _domain_error_handler)

    # Routers
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(statuses.router, prefix="/api/v1")
    app.include_router(hierarchy.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
