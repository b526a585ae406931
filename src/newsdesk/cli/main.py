"""Newsdesk CLI — run the server, bootstrap users, browse and follow articles.

Usage:
    newsdesk serve                                   # Run the API with uvicorn
    newsdesk create-user alice alice@x.io s3cret!!  # Direct DB insert (first admin)
    newsdesk login alice@x.io s3cret!!               # Print a session token
    newsdesk articles --page 2                       # Newest articles
    newsdesk search "climate"                        # Keyword search
    newsdesk listen                                  # Follow the live feed
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx
import websockets

from newsdesk import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
PING_INTERVAL = 30.0


def _api_url() -> str:
    return os.environ.get("NEWSDESK_API_URL", DEFAULT_API_URL).rstrip("/")


def _ws_url(token: Optional[str]) -> str:
    base = _api_url()
    if base.startswith("https://"):
        url = "wss://" + base[len("https://"):]
    else:
        url = "ws://" + base.removeprefix("http://")
    url += "/ws"
    if token:
        url += f"?token={token}"
    return url


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the newsdesk backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    invoked from an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _check(r: httpx.Response) -> dict | list:
    if r.status_code >= 400:
        try:
            detail = r.json().get("detail", r.text)
        except ValueError:
            detail = r.text
        _fail(f"{r.status_code} {detail}")
    return r.json()


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(_cell(row.get(k))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _cell(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


_ARTICLE_COLUMNS = [
    ("TITLE", "title", 40),
    ("AUTHOR", "author", 16),
    ("JOURNAL", "journal_name", 18),
    ("CATEGORY", "category", 20),
    ("CREATED", "created_at", 19),
]


def _print_page(page: dict) -> None:
    _print_table(page["items"], _ARTICLE_COLUMNS)
    click.echo(
        f"\nPage {page['page']}/{page['page_count']} "
        f"({page['total']} article(s), {page['limit']} per page)"
    )


_EVENT_COLORS = {
    "article.created": "green",
    "article.updated": "yellow",
    "articles.updated": "yellow",
    "article.deleted": "red",
    "articles.deleted": "red",
    "system.welcome": "cyan",
}


def format_event(msg: dict) -> str:
    """One-line rendering of a feed frame."""
    kind = msg.get("type", "?")
    label = click.style(kind.ljust(16), fg=_EVENT_COLORS.get(kind, "white"))
    if "article" in msg:
        detail = f"{msg['article'].get('title', '')} by {msg['article'].get('author', '')}"
    elif "articleId" in msg:
        detail = msg["articleId"]
    elif "criteria" in msg:
        detail = f"{msg.get('count')} matching {json.dumps(msg['criteria'])}"
    else:
        detail = msg.get("message", "")
    return f"[{msg.get('at', '')[:19]}] {label} {detail}"


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="newsdesk")
def main():
    """Newsdesk — articles API with a live change feed."""


# ---------------------------------------------------------------------------
# newsdesk serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: NEWSDESK_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: NEWSDESK_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from newsdesk.config import settings

    uvicorn.run(
        "newsdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# newsdesk create-user
# ---------------------------------------------------------------------------


@main.command("create-user")
@click.argument("username")
@click.argument("email")
@click.argument("password")
@click.option(
    "--role",
    type=click.Choice(["member", "author", "admin"]),
    default="member",
    show_default=True,
)
def create_user(username: str, email: str, password: str, role: str):
    """Insert a user directly into the database.

    Use this to bootstrap the first admin account.
    """
    user = _run(_create_user_impl(username, email, password, role))
    click.secho(f"Created {user.role} {user.username} ({user.id})", fg="green")


async def _create_user_impl(username: str, email: str, password: str, role: str):
    from newsdesk.db.engine import async_session_factory
    from newsdesk.db.models import Role
    from newsdesk.errors import Conflict
    from newsdesk.services.user_service import UserService

    if len(password) < 8:
        _fail("Password must be at least 8 characters")

    async with async_session_factory() as db:
        try:
            return await UserService(db).register(
                username=username,
                email=email,
                password=password,
                role=Role(role),
            )
        except Conflict as e:
            _fail(e.detail)


# ---------------------------------------------------------------------------
# newsdesk login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.argument("password")
def login(email: str, password: str):
    """Log in and print a session token (valid for one hour)."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/login", json={"email": email, "password": password})
        data = _check(r)
    click.secho(f"Logged in as {data['username']} ({data['role']})", fg="green", err=True)
    click.echo(data["access_token"])


# ---------------------------------------------------------------------------
# newsdesk articles / search
# ---------------------------------------------------------------------------


@main.command()
@click.option("--page", default=1, show_default=True)
@click.option("--limit", default=5, show_default=True)
def articles(page: int, limit: int):
    """List articles, newest first."""
    _run(_articles_impl(page, limit))


async def _articles_impl(page: int, limit: int):
    async with _client() as c:
        r = await c.get("/api/v1/articles", params={"page": page, "limit": limit})
        data = _check(r)
    if not data["items"]:
        click.echo("No articles.")
        return
    _print_page(data)


@main.command()
@click.argument("query")
@click.option("--page", default=1, show_default=True)
@click.option("--limit", default=10, show_default=True)
def search(query: str, page: int, limit: int):
    """Search articles by keyword (at least 2 characters)."""
    _run(_search_impl(query, page, limit))


async def _search_impl(query: str, page: int, limit: int):
    async with _client() as c:
        r = await c.get(
            "/api/v1/articles/search",
            params={"q": query, "page": page, "limit": limit},
        )
        if r.status_code == 404:
            click.echo(f'No articles match "{query}".')
            return
        data = _check(r)
    click.secho(data["message"], bold=True)
    _print_page(data)


# ---------------------------------------------------------------------------
# newsdesk listen
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", envvar="NEWSDESK_TOKEN", help="Session token (or NEWSDESK_TOKEN)")
@click.option("--raw", is_flag=True, help="Print raw JSON frames")
@click.option("--count", type=int, default=None, help="Exit after N article events")
def listen(token: Optional[str], raw: bool, count: Optional[int]):
    """Follow the live article feed. Ctrl-C to stop."""
    try:
        _run(_listen_impl(token, raw, count))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


async def _listen_impl(token: Optional[str], raw: bool, count: Optional[int]):
    url = _ws_url(token)
    click.echo(f"Connecting to {url.split('?')[0]} ...", err=True)
    seen = 0
    try:
        async with websockets.connect(url) as ws:
            while count is None or seen < count:
                try:
                    frame = await asyncio.wait_for(ws.recv(), timeout=PING_INTERVAL)
                except asyncio.TimeoutError:
                    await ws.send(json.dumps({"type": "ping"}))
                    continue
                msg = json.loads(frame)
                if msg.get("type") == "pong":
                    continue
                click.echo(frame if raw else format_event(msg))
                if msg.get("type") != "system.welcome":
                    seen += 1
    except websockets.InvalidHandshake as e:
        # The server closes before accepting when the token is bad
        _fail(f"Feed rejected the connection (check the token): {e}")
    except websockets.ConnectionClosed as e:
        _fail(f"Connection closed: {e}")
    except OSError as e:
        _fail(f"Could not connect: {e}")


if __name__ == "__main__":
    main()
