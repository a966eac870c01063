"""
Back-Office Admin API Server

Entry point for the FastAPI application.
"""

import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backoffice import __version__
from backoffice.api.v1 import router as api_v1_router
from backoffice.core.config import get_settings
from backoffice.core.database import check_db
from backoffice.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from backoffice.core.redis import close_redis

settings = get_settings()
log = structlog.get_logger()


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Back Office",
        description="Administrative back office for users, organizations and invitations.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # Added last runs first: CORS, then CSRF, then security headers
    app.add_middleware(SecurityHeadersMiddleware, docs_enabled=settings.debug)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint: the store must answer."""
        try:
            ready = await check_db()
        except Exception:
            log.exception("readiness.db_unreachable")
            ready = False
        if not ready:
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("Back office starting", version=__version__)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Back office shutting down")
        await close_redis()

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
