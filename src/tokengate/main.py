"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything process-wide (settings, token codec, database
engine) is built here once and stored on app.state; dependencies read it
from there instead of from module globals, so each test can build an app
with its own secret and database.

Run with: uvicorn --factory tokengate.main:create_app
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tokengate import __version__
from tokengate.api import api_router
from tokengate.auth.jwt import TokenCodec
from tokengate.cache import close_redis, init_redis
from tokengate.config import Settings, get_settings
from tokengate.db.engine import build_engine, build_session_factory
from tokengate.errors import AuthError
from tokengate.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "tokengate.starting",
        version=__version__,
        environment=settings.environment,
    )

    try:
        await init_redis(settings.redis_url)
        logger.info("tokengate.redis_connected")
    except Exception as e:
        # Redis only backs rate limiting; serve without it.
        logger.warning("tokengate.redis_unavailable", error=str(e))

    yield

    logger.info("tokengate.shutdown")
    await close_redis()
    await app.state.engine.dispose()


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application.

    Raises ConfigurationError when no signing secret is configured: the
    process must not come up able to serve auth routes without one.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    codec = TokenCodec.from_settings(settings)
    engine = build_engine(settings)

    app = FastAPI(
        title="tokengate",
        description="Access/refresh token authentication API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.codec = codec
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_exception_handler(AuthError, handle_auth_error)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → RateLimit → ErrorBoundary → handler

    from tokengate.middleware.errors import ErrorBoundaryMiddleware
    from tokengate.middleware.rate_limit import RateLimitMiddleware
    from tokengate.middleware.request_id import RequestIdMiddleware

    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,  # cookies carry the tokens
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
