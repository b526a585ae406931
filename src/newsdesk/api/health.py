"""Health check endpoint.

Reports the database, Redis (only when configured) and the number of
live feed connections held by this process.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from newsdesk import __version__
from newsdesk.db import engine as db_engine
from newsdesk.db.redis import get_redis

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with db_engine.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    redis = get_redis()
    if redis is not None:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {
        "status": status,
        **checks,
        "connections": len(request.app.state.registry),
    }
