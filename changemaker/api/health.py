"""Probes and the Prometheus scrape endpoint.

/health (liveness) answers "is the process alive"; it stays 200 and
reports degraded dependencies in the body, because a restart would not
fix a Redis outage.  /ready (readiness) answers "can this instance take
traffic"; the database is the one critical dependency, so a failed
round trip there is a 503 and the load balancer stops routing here.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from changemaker.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_ok(request: Request) -> bool | None:
    """True/False after a round trip, None when running in memory."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        return None
    try:
        async with factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.exception("Database readiness check failed")
        return False
    return True


@router.get("/health")
async def health(request: Request) -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Redis ping failed", exc_info=True)
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    database = await _database_ok(request)
    if database is None:
        checks["database"] = "in_memory"
    elif database:
        checks["database"] = "ok"
    else:
        checks["database"] = "degraded"
        overall = "degraded"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready(request: Request) -> Response:
    if await _database_ok(request) is False:
        return Response(status_code=503)
    return Response(status_code=200)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
