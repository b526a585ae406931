"""WebSocket endpoint — live article feed for frontend clients.

Each client connects to /ws (optionally /ws?token=JWT). The handler:
1. Authenticates the token if given (required when ws_require_auth)
2. Registers the socket, which sends the welcome frame
3. Answers {"type": "ping"} with a pong to that socket only
4. Unregisters on disconnect or error

Article events reach the socket through Broadcaster.publish, not
through this handler.
"""

import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from newsdesk.auth.jwt import TokenError, verify_token
from newsdesk.config import settings
from newsdesk.events.types import pong
from newsdesk.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter()

# Application-defined close code for auth failures (4000-4999 range).
WS_AUTH_FAILED = 4001


@router.websocket("/ws")
async def article_feed(websocket: WebSocket):
    """Live feed of article changes."""
    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")

    if not token and settings.ws_require_auth:
        logger.info("ws.rejected", reason="missing_token")
        await websocket.close(code=WS_AUTH_FAILED, reason="Authentication required")
        return

    if token:
        try:
            verify_token(token)
        except TokenError as e:
            logger.info("ws.rejected", reason=str(e))
            await websocket.close(code=WS_AUTH_FAILED, reason="Invalid or expired token")
            return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()

    registry: ConnectionRegistry = websocket.app.state.registry
    await registry.register(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("ws.bad_message", size=len(data))
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await websocket.send_text(pong().to_json())
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(websocket)
