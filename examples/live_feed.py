#!/usr/bin/env python3
"""
Newsdesk live feed — watch article events arrive over the WebSocket.

Connects to /ws, then creates, updates and deletes an article over REST
and prints each frame the feed pushes back.
Run with: python examples/live_feed.py

Backend must be running: http://localhost:8000
"""

import asyncio
import json

import websockets

from _common import create_client

WS_URL = "ws://localhost:8000/ws"


async def show_frames(ws, n: int) -> None:
    for _ in range(n):
        frame = json.loads(await asyncio.wait_for(ws.recv(), timeout=5))
        detail = frame.get("article", {}).get("title") or frame.get("articleId") or ""
        print(f"   ← {frame['type']:<16} {frame.get('message', '')} {detail}")


async def main():
    client, username = create_client("author")

    async with websockets.connect(WS_URL) as ws:
        print("\nConnected to the live feed.")
        await show_frames(ws, 1)  # welcome

        print("\n1. Create")
        resp = client.post("/articles", json={
            "title": "Live from the newsroom",
            "author": username,
            "journal_name": "Feed Demo",
            "category": ["demo"],
            "description": "Watch me appear on the WebSocket.",
        })
        article_id = resp.json()["article"]["id"]
        await show_frames(ws, 1)

        print("\n2. Update")
        client.put(f"/articles/id/{article_id}", json={"title": "Live (edited)"})
        await show_frames(ws, 1)

        print("\n3. Ping")
        await ws.send(json.dumps({"type": "ping"}))
        await show_frames(ws, 1)

        print("\n4. Delete")
        client.delete(f"/articles/id/{article_id}")
        await show_frames(ws, 1)


if __name__ == "__main__":
    asyncio.run(main())
