"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running, the
database is reachable, and reports how many live listeners the relay holds
(a number that should track open subscriptions and fall back on disconnect).
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from postpulse import __version__
from postpulse.db.engine import get_db
from postpulse.realtime.pubsub import PubSub, get_pubsub

router = APIRouter()


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    pubsub: PubSub = Depends(get_pubsub),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if all(
        checks[k] == "ok" for k in ("server", "database")
    ) else "degraded"

    return {"status": status, **checks, "subscribers": pubsub.listener_count()}
