"""Tests for HTTP middleware — security headers, request IDs, rate limits.

Learn: Rate limiting is a no-op without Redis, so the limiter is
exercised against a tiny in-test stand-in that implements the two
Redis calls it makes (incr, expire).
"""

import pytest

from newsdesk.db import redis as redis_module


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/v1")
    r2 = await client.get("/api/v1")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/v1", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    r = await client.get("/api/v1")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_no_rate_limit_headers_without_redis(client):
    r = await client.get("/api/v1")
    assert "X-RateLimit-Limit" not in r.headers


class CountingRedis:
    def __init__(self):
        self.counts: dict[str, int] = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        return True


@pytest.mark.asyncio
async def test_auth_endpoints_get_the_stricter_limit(client, monkeypatch):
    fake = CountingRedis()
    monkeypatch.setattr(redis_module, "_redis", fake)

    body = {"email": "nobody@example.com", "password": "whatever_123"}
    statuses = [
        (await client.post("/api/v1/auth/login", json=body)).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429

    # The general bucket is separate
    r = await client.get("/api/v1")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert all(":auth:" in k or ":api:" in k for k in fake.counts)
