"""Broadcaster — fans one event out to every open feed connection.

Called by route handlers strictly after the mutation has been committed
and reported a non-zero count; never before, never for a failed write.

Delivery is best effort: each send is bounded by ws_send_timeout_seconds.
A socket that misses the bound is skipped for this event only and stays
registered; a socket whose send raises is dropped from the registry.
Neither reaches the caller. No retry, no queue, no replay.
"""

import asyncio
from typing import Any, Optional

import structlog
from fastapi import Request

from newsdesk.events.types import BroadcastEvent
from newsdesk.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()


class Broadcaster:
    """Publishes BroadcastEvents through a ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry, send_timeout: float = 5.0):
        self.registry = registry
        self.send_timeout = send_timeout

    async def publish(self, event: Optional[BroadcastEvent]) -> int:
        """Send `event` to every connection open right now.

        A None event (the mutation touched nothing) is a no-op.
        Returns the number of connections a send was issued to.
        """
        if event is None:
            return 0

        frame = event.to_json()

        async def deliver(connection: Any) -> None:
            try:
                await asyncio.wait_for(
                    connection.send_text(frame), timeout=self.send_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "broadcast.delivery_skipped",
                    event_type=event.type.value,
                    timeout=self.send_timeout,
                )
            except Exception as e:
                logger.warning(
                    "broadcast.delivery_failed",
                    event_type=event.type.value,
                    error=repr(e),
                )
                self.registry.unregister(connection)

        recipients = await self.registry.for_each_open(deliver)
        logger.info(
            "broadcast.published",
            event_type=event.type.value,
            recipients=recipients,
        )
        return recipients


def get_broadcaster(request: Request) -> Broadcaster:
    """FastAPI dependency: the app's Broadcaster (set in create_app)."""
    return request.app.state.broadcaster
