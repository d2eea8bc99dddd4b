"""
mdcatalog.api.app

FastAPI app factory for the catalog records service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Map domain exceptions to HTTP responses.
- Initialize and dispose shared infrastructure (DB engine/session factory).
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mdcatalog import __version__
from mdcatalog.api.routers.dev_auth import router as dev_auth_router
from mdcatalog.api.routers.health import router as health_router
from mdcatalog.api.routers.records import router as records_router
from mdcatalog.api.routers.selections import router as selections_router
from mdcatalog.api.routers.sharing import bulk_router as sharing_bulk_router
from mdcatalog.api.routers.sharing import router as sharing_router
from mdcatalog.db.init_db import init_db
from mdcatalog.db.session import create_engine, create_sessionmaker
from mdcatalog.errors import CatalogError, error_payload
from mdcatalog.observability.logging import configure_logging, get_logger
from mdcatalog.observability.middleware import RequestContextMiddleware
from mdcatalog.settings import Settings

log = get_logger(__name__)

# Records are served under the current path and the versioned 0.1 path.
RECORD_PREFIXES = ("/api/records", "/api/0.1/records")


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, fmt=settings.log_format
    )

    app = FastAPI(
        title="Metadata catalog records API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(selections_router)
    for prefix in RECORD_PREFIXES:
        # Bulk routes first so "/group-and-owner" is never read as a record UUID.
        app.include_router(sharing_bulk_router, prefix=prefix)
        app.include_router(sharing_router, prefix=prefix)
        app.include_router(records_router, prefix=prefix)
    app.include_router(sharing_bulk_router, prefix="/api")

    @app.exception_handler(CatalogError)
    async def _catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
        log.info("request.rejected", error=exc.error_type, status=exc.status_code, reason=exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; business logic stays
# in routers/services.
