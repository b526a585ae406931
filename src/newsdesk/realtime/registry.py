"""Connection registry — owns the set of live feed connections.

Only register/unregister/for_each_open touch the set. Iteration works on
a snapshot, so a socket that closes (and unregisters) mid-pass neither
breaks the loop nor causes another socket to be skipped or visited twice.
Sockets found closed during a pass are pruned lazily.
"""

import asyncio
from typing import Any, Awaitable, Callable

import structlog
from starlette.websockets import WebSocketState

from newsdesk.events.types import welcome

logger = structlog.get_logger()


def is_open(connection: Any) -> bool:
    """True while both sides of the WebSocket consider it connected."""
    return (
        connection.client_state == WebSocketState.CONNECTED
        and connection.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """In-memory set of WebSocket connections for one server process."""

    def __init__(self) -> None:
        self._connections: set[Any] = set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: Any) -> bool:
        return connection in self._connections

    async def register(self, connection: Any) -> None:
        """Add a connection and greet it. A failed greeting is only logged."""
        self._connections.add(connection)
        logger.info("ws.connected", connections=len(self._connections))
        try:
            await connection.send_text(welcome().to_json())
        except Exception as e:
            logger.warning("ws.welcome_failed", error=str(e))

    def unregister(self, connection: Any) -> None:
        """Remove a connection. Unknown connections are ignored."""
        if connection in self._connections:
            self._connections.discard(connection)
            logger.info("ws.disconnected", connections=len(self._connections))

    async def for_each_open(
        self, fn: Callable[[Any], Awaitable[None]]
    ) -> int:
        """Apply `fn` concurrently to every open connection.

        Returns how many connections `fn` was applied to.
        """
        live = []
        for connection in list(self._connections):
            if is_open(connection):
                live.append(connection)
            else:
                self._connections.discard(connection)
                logger.info("ws.pruned", connections=len(self._connections))

        if live:
            await asyncio.gather(*(fn(c) for c in live))
        return len(live)
