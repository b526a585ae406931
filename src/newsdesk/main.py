"""FastAPI application factory.

create_app() returns a configured FastAPI instance: the connection
registry and broadcaster live on app.state (one per app, so tests get
a fresh pair), error handlers render the newsdesk error taxonomy, and
the lifespan manages Redis and the database engine.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from newsdesk import __version__
from newsdesk.api import api_router
from newsdesk.config import settings
from newsdesk.errors import NewsdeskError, StoreFailure, newsdesk_error_handler
from newsdesk.realtime.broadcast import Broadcaster
from newsdesk.realtime.registry import ConnectionRegistry
from newsdesk.services.upload_service import UPLOADS_PATH, upload_root

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "newsdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from newsdesk.db.redis import close_redis, init_redis
    if settings.redis_url:
        try:
            await init_redis()
            logger.info("newsdesk.redis_connected", url=settings.redis_url)
        except Exception as e:
            # Redis is optional; only rate limiting depends on it
            logger.warning("newsdesk.redis_unavailable", error=str(e))

    yield

    logger.info("newsdesk.shutdown", connections=len(app.state.registry))
    await close_redis()

    from newsdesk.db.engine import engine
    await engine.dispose()


async def store_failure_handler(request: Request, exc: SQLAlchemyError):
    logger.error("store.failure", path=request.url.path, error=str(exc))
    return await newsdesk_error_handler(request, StoreFailure("Store failure"))


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Newsdesk",
        description="Articles API with role-based access and a live change feed",
        version=__version__,
        lifespan=lifespan,
    )

    registry = ConnectionRegistry()
    app.state.registry = registry
    app.state.broadcaster = Broadcaster(
        registry, send_timeout=settings.ws_send_timeout_seconds
    )

    app.add_exception_handler(NewsdeskError, newsdesk_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_failure_handler)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from newsdesk.middleware.rate_limit import RateLimitMiddleware
    from newsdesk.middleware.request_id import RequestIdMiddleware
    from newsdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.mount(UPLOADS_PATH, StaticFiles(directory=upload_root()), name="uploads")

    from newsdesk.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: newsdesk.main:app)
app = create_app()
