"""Test fixtures — isolated in-memory database per test.

Each test gets a fresh SQLite database (aiosqlite + StaticPool, so every
session shares the one in-memory connection), with tables created from
the ORM metadata. The app's get_db is overridden to hand out sessions
bound to it, and the connection registry/broadcaster on app.state are
replaced so no connection leaks between tests.

Settings are read at import time, so the environment is prepared here
before anything from newsdesk is imported.
"""

import os
import tempfile

os.environ.setdefault("NEWSDESK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NEWSDESK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("NEWSDESK_REDIS_URL", "")
os.environ.setdefault("NEWSDESK_UPLOAD_DIR", tempfile.mkdtemp(prefix="newsdesk-uploads-"))

import uuid  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from starlette.websockets import WebSocketState  # noqa: E402

from newsdesk.auth.jwt import create_access_token  # noqa: E402
from newsdesk.db import engine as engine_module  # noqa: E402
from newsdesk.db.engine import build_engine, get_db  # noqa: E402
from newsdesk.db.models import Base, Role  # noqa: E402
from newsdesk.main import app  # noqa: E402
from newsdesk.realtime.broadcast import Broadcaster  # noqa: E402
from newsdesk.realtime.registry import ConnectionRegistry  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class FakeConnection:
    """Stands in for a WebSocket: records every text frame it is sent."""

    def __init__(self, name: str = "conn", fail: bool = False):
        self.name = name
        self.fail = fail
        self.sent: list[str] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError(f"{self.name} is broken")
        self.sent.append(data)

    def close(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED

    def __repr__(self) -> str:
        return f"FakeConnection({self.name!r})"


def auth_headers(role: Role, username: str = "tester", user_id: str | None = None) -> dict:
    """Bearer header carrying a real signed token for `role`."""
    token = create_access_token(user_id or str(uuid.uuid4()), role, username=username)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def db_engine():
    engine = build_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def registry():
    """Fresh registry + broadcaster installed on the app for this test."""
    reg = ConnectionRegistry()
    app.state.registry = reg
    app.state.broadcaster = Broadcaster(reg, send_timeout=1.0)
    yield reg


@pytest_asyncio.fixture()
async def client(db_engine, session_factory, registry, monkeypatch):
    """HTTP client with get_db (and the health check engine) pointed at the test database.

    Auth is NOT overridden: tests send real tokens (see auth_headers),
    so the whole access control gate runs on every request.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(engine_module, "engine", db_engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def listener(registry):
    """One registered feed connection, welcome frame already cleared."""
    conn = FakeConnection("listener")
    await registry.register(conn)
    conn.sent.clear()
    return conn
