"""Async SQLAlchemy engine and session factory.

SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
"""

import json

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from newsdesk.config import settings


def _json_serializer(value) -> str:
    # Keep non-ASCII categories searchable as plain text.
    return json.dumps(value, ensure_ascii=False)


def build_engine(url: str, echo: bool = False, **extra):
    """Create an async engine. Pool sizing only applies to server databases."""
    kwargs = {"echo": echo, "json_serializer": _json_serializer, **extra}
    if not url.startswith("sqlite") and "poolclass" not in extra:
        # Connection pool: min 5, max 20 connections.
        kwargs.update(pool_size=5, max_overflow=15)
    return create_async_engine(url, **kwargs)


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
