import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from showops.core.logging import SERVICE_NAME
from showops.db.base import get_session_factory
from showops.db.redis import redis_initialized, redis_reachable

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. 503 once SIGTERM arrives so the balancer drains this instance."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(status_code=503, content={"status": "shutting_down", "service": SERVICE_NAME})
    return {"status": "healthy", "service": SERVICE_NAME}


async def _database_reachable() -> bool:
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.error("database_health_check_failed", error=str(exc))
        return False
    return True


@router.get("/ready")
async def readiness_check():
    """Readiness check: the database, plus Redis when it was connected for the run lease."""
    checks = {"database": await _database_reachable()}
    if redis_initialized():
        checks["redis"] = await redis_reachable()

    healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ready" if healthy else "degraded", "checks": checks},
    )
