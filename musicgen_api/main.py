"""
MusicGen API - FastAPI Application
Gateway between the mobile app, Supabase and the Suno generation API
"""

import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from musicgen_api import __version__
from musicgen_api.config import ConfigurationError, Settings, get_settings, validate_configuration
from musicgen_api.routes import feed, generation, health, profile, tracks
from musicgen_api.utils.errors import GatewayError
from musicgen_api.utils.logger import setup_logging
from musicgen_api.utils.middleware import (
    BodySizeLimitMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from musicgen_api.utils.suno_client import SunoClient
from musicgen_api.utils.supabase_client import SupabaseStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    settings: Settings = app.state.settings
    owned = []

    logger.info(
        "MusicGen API starting up",
        environment=settings.environment,
        supabase_url=settings.supabase_url,
        suno_base_url=settings.suno_base_url
    )

    if getattr(app.state, "store", None) is None:
        validate_configuration(settings)
        store = SupabaseStore(settings.supabase_url, settings.supabase_key)
        await store.start()
        app.state.store = store
        owned.append(store)

    if getattr(app.state, "suno_client", None) is None:
        suno_client = SunoClient(
            base_url=settings.suno_base_url,
            api_key=settings.suno_api_key,
            model=settings.suno_model,
            callback_url=settings.suno_callback_url
        )
        await suno_client.start()
        app.state.suno_client = suno_client
        owned.append(suno_client)

    if not settings.suno_api_key:
        logger.warning("SUNO_API_KEY is not set; generation requests will be rejected by Suno")

    logger.info("Server ready to accept requests", port=settings.port)

    yield

    logger.info("Shutting down gracefully...")
    for client in reversed(owned):
        await client.stop()
    logger.info("MusicGen API shutdown complete")


def _validation_details(exc: RequestValidationError):
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type")
        }
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render gateway and framework HTTP errors as {"error": ...}"""
        if isinstance(exc, GatewayError):
            content = exc.to_dict()
        else:
            content = {"error": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed or invalid request bodies fail fast with 400"""
        logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": _validation_details(exc)}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            method=request.method,
            path=request.url.path,
            exc_info=True
        )
        content = {"error": "Internal server error"}
        if request.app.state.settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SupabaseStore] = None,
    suno_client: Optional[SunoClient] = None
) -> FastAPI:
    """
    Build the application

    Args:
        settings: Settings to use; defaults to the environment
        store: Pre-built store (tests); otherwise created in the lifespan
        suno_client: Pre-built Suno client (tests); otherwise created in the lifespan
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="MusicGen AI API",
        description="Backend gateway for MusicGen: auth, credits, tracks and Suno generation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.store = store
    app.state.suno_client = suno_client

    # Starlette runs the last-added middleware first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        path_prefix=settings.api_prefix
    )
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(generation.router, prefix="/api", tags=["Generation"])
    app.include_router(tracks.router, prefix="/api/tracks", tags=["Tracks"])
    app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
    app.include_router(feed.router, prefix="/api/feed", tags=["Feed"])

    return app


app = create_app()


def run():
    """Console entry point: validate configuration, then serve with uvicorn"""
    import uvicorn

    settings = get_settings()
    try:
        validate_configuration(settings)
    except ConfigurationError as e:
        logger.error("Missing Supabase credentials", error=str(e))
        sys.exit(1)

    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
