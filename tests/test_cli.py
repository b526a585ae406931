"""CLI tests — click's CliRunner with the HTTP layer stubbed out.

Learn: Commands talk to the backend through _client(). Pointing that at
an httpx MockTransport keeps these tests offline and fast.
"""

import httpx
import pytest
from click.testing import CliRunner

from newsdesk.cli import main as cli

ARTICLE = {
    "id": "6f1d1f0e-1111-4f4f-9999-000000000001",
    "title": "Technologie",
    "author": "alice",
    "journal_name": "Science Weekly",
    "category": ["tech", "science"],
    "description": "About tools.",
    "image_url": "",
    "created_at": "2026-01-01T10:00:00",
    "updated_at": "2026-01-01T10:00:00",
}


def _page(**extra) -> dict:
    return {"items": [ARTICLE], "total": 1, "page": 1, "limit": 5, "page_count": 1, **extra}


@pytest.fixture()
def backend(monkeypatch):
    """Route CLI HTTP calls to a handler; returns the list of seen requests."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        path = request.url.path
        if path == "/api/v1/auth/login":
            return httpx.Response(200, json={
                "access_token": "tok-123",
                "token_type": "bearer",
                "user_id": ARTICLE["id"],
                "username": "alice",
                "role": "author",
            })
        if path == "/api/v1/articles":
            return httpx.Response(200, json=_page())
        if path == "/api/v1/articles/search":
            if request.url.params["q"] == "none":
                return httpx.Response(404, json={"detail": "No articles", "error": "NotFound"})
            if len(request.url.params["q"]) < 2:
                return httpx.Response(400, json={"detail": "too short", "error": "ValidationFailed"})
            return httpx.Response(200, json=_page(limit=10, query="te", message="1 article(s) found"))
        return httpx.Response(404, json={"detail": "Not Found"})

    def client():
        return httpx.AsyncClient(
            base_url="http://test", transport=httpx.MockTransport(handler)
        )

    monkeypatch.setattr(cli, "_client", client)
    return seen


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert "newsdesk" in result.output


def test_login_prints_token(backend):
    result = CliRunner().invoke(cli.main, ["login", "alice@example.com", "secret_123"])
    assert result.exit_code == 0
    assert "tok-123" in result.output
    assert backend[0].method == "POST"


def test_articles_table(backend):
    result = CliRunner().invoke(cli.main, ["articles", "--limit", "5"])
    assert result.exit_code == 0
    assert "Technologie" in result.output
    assert "tech, science" in result.output
    assert "Page 1/1" in result.output
    assert backend[0].url.params["limit"] == "5"


def test_search_hits(backend):
    result = CliRunner().invoke(cli.main, ["search", "te"])
    assert result.exit_code == 0
    assert "1 article(s) found" in result.output


def test_search_no_hits(backend):
    result = CliRunner().invoke(cli.main, ["search", "none"])
    assert result.exit_code == 0
    assert "No articles match" in result.output


def test_search_error_exits_nonzero(backend):
    result = CliRunner().invoke(cli.main, ["search", "t"])
    assert result.exit_code == 1
    assert "400" in result.output


def test_ws_url_follows_api_url(monkeypatch):
    monkeypatch.setenv("NEWSDESK_API_URL", "https://news.example.com/")
    assert cli._ws_url("abc") == "wss://news.example.com/ws?token=abc"
    monkeypatch.setenv("NEWSDESK_API_URL", "http://localhost:8000")
    assert cli._ws_url(None) == "ws://localhost:8000/ws"


def test_format_event_lines():
    line = cli.format_event({
        "type": "articles.deleted",
        "count": 2,
        "criteria": {"author": "alice"},
        "at": "2026-01-01T10:00:00+00:00",
    })
    assert "articles.deleted" in line
    assert "2 matching" in line

    line = cli.format_event({"type": "article.created", "article": ARTICLE, "at": ""})
    assert "Technologie by alice" in line
