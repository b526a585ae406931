"""Connection registry + broadcaster tests, using fake connections.

Learn: The feed core never needs a real socket. FakeConnection exposes
the same surface the registry and broadcaster use (client_state,
application_state, send_text), so every delivery rule can be checked
directly and deterministically.
"""

import asyncio
import json

import pytest

from conftest import FakeConnection
from newsdesk.events import types as events
from newsdesk.events.types import EventType
from newsdesk.realtime.broadcast import Broadcaster
from newsdesk.realtime.registry import ConnectionRegistry


def _types(conn) -> list[str]:
    return [json.loads(f)["type"] for f in conn.sent]


@pytest.fixture()
def reg():
    return ConnectionRegistry()


@pytest.fixture()
def broadcaster(reg):
    return Broadcaster(reg, send_timeout=0.5)


# ═══════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_sends_welcome(reg):
    conn = FakeConnection("a")
    await reg.register(conn)
    assert conn in reg
    assert len(reg) == 1
    assert _types(conn) == ["system.welcome"]
    assert "message" in json.loads(conn.sent[0])


@pytest.mark.asyncio
async def test_failed_welcome_still_registers(reg):
    conn = FakeConnection("broken", fail=True)
    await reg.register(conn)
    assert conn in reg


@pytest.mark.asyncio
async def test_unregister_is_idempotent(reg):
    conn = FakeConnection("a")
    await reg.register(conn)
    reg.unregister(conn)
    reg.unregister(conn)
    reg.unregister(FakeConnection("never-registered"))
    assert len(reg) == 0


@pytest.mark.asyncio
async def test_for_each_open_prunes_closed(reg):
    a, b = FakeConnection("a"), FakeConnection("b")
    await reg.register(a)
    await reg.register(b)
    b.close()

    visited = []

    async def visit(conn):
        visited.append(conn)

    assert await reg.for_each_open(visit) == 1
    assert visited == [a]
    assert b not in reg


@pytest.mark.asyncio
async def test_removal_during_pass_skips_nobody(reg):
    conns = [FakeConnection(str(i)) for i in range(5)]
    for c in conns:
        await reg.register(c)

    visited = []

    async def visit(conn):
        visited.append(conn)
        # Every visit drops some other connection from the set
        for other in conns:
            if other is not conn:
                reg.unregister(other)
                break

    assert await reg.for_each_open(visit) == 5
    assert sorted(c.name for c in visited) == ["0", "1", "2", "3", "4"]


# ═══════════════════════════════════════════════════════════
# Broadcaster
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_publish_reaches_registered_then_only_remaining(reg, broadcaster):
    a, b = FakeConnection("a"), FakeConnection("b")
    await reg.register(a)
    await reg.register(b)

    sent = await broadcaster.publish(events.article_created({"title": "X"}))
    assert sent == 2
    for conn in (a, b):
        msg = json.loads(conn.sent[-1])
        assert msg["type"] == "article.created"
        assert msg["article"]["title"] == "X"

    reg.unregister(b)
    await broadcaster.publish(events.article_deleted("42"))
    assert _types(a) == ["system.welcome", "article.created", "article.deleted"]
    assert _types(b) == ["system.welcome", "article.created"]


@pytest.mark.asyncio
async def test_publish_none_is_noop(reg, broadcaster):
    a = FakeConnection("a")
    await reg.register(a)
    assert await broadcaster.publish(None) == 0
    assert _types(a) == ["system.welcome"]


@pytest.mark.asyncio
async def test_publish_with_no_connections(broadcaster):
    assert await broadcaster.publish(events.article_deleted("1")) == 0


@pytest.mark.asyncio
async def test_failing_connection_is_dropped_others_still_served(reg, broadcaster):
    good, bad = FakeConnection("good"), FakeConnection("bad")
    await reg.register(good)
    await reg.register(bad)
    bad.fail = True

    await broadcaster.publish(events.articles_deleted(3, {"title": "old"}))
    assert bad not in reg
    assert good in reg
    msg = json.loads(good.sent[-1])
    assert msg["count"] == 3
    assert msg["criteria"] == {"title": "old"}


@pytest.mark.asyncio
async def test_slow_connection_skipped_once_then_served_again(reg, broadcaster):
    class StallsOnce(FakeConnection):
        stalled = False

        async def send_text(self, data):
            if self.sent and not self.stalled:
                self.stalled = True
                await asyncio.sleep(10)
            self.sent.append(data)

    fast, slow = FakeConnection("fast"), StallsOnce("slow")
    await reg.register(fast)
    await reg.register(slow)

    await broadcaster.publish(events.article_updated({"title": "Y"}))
    assert slow in reg
    assert _types(slow) == ["system.welcome"]
    assert _types(fast)[-1] == "article.updated"

    assert await broadcaster.publish(events.article_created({"title": "Z"})) == 2
    assert _types(slow) == ["system.welcome", "article.created"]
    assert _types(fast)[-1] == "article.created"


@pytest.mark.asyncio
async def test_late_registrant_gets_no_earlier_events(reg, broadcaster):
    await broadcaster.publish(events.article_created({"title": "early"}))
    late = FakeConnection("late")
    await reg.register(late)
    assert _types(late) == ["system.welcome"]


@pytest.mark.asyncio
async def test_each_open_connection_gets_exactly_one_copy(reg, broadcaster):
    conns = [FakeConnection(str(i)) for i in range(10)]
    for c in conns:
        await reg.register(c)
        c.sent.clear()

    await broadcaster.publish(events.articles_updated(2, {"author": "alice"}))
    assert all(len(c.sent) == 1 for c in conns)


# ═══════════════════════════════════════════════════════════
# Wire shapes
# ═══════════════════════════════════════════════════════════


def test_event_wire_shapes():
    created = events.article_created({"title": "X"}).to_message()
    assert set(created) == {"type", "message", "article", "at"}

    deleted = events.article_deleted("abc").to_message()
    assert deleted["articleId"] == "abc"

    bulk = events.articles_updated(2, {"author": "alice"}).to_message()
    assert set(bulk) == {"type", "message", "count", "criteria", "at"}

    assert set(events.pong().to_message()) == {"type", "at"}
    assert events.welcome().type is EventType.SYSTEM_WELCOME


def test_event_json_keeps_unicode():
    frame = events.article_created({"title": "Überblick"}).to_json()
    assert "Überblick" in frame
