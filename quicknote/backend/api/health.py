"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (note store reachable)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy import text

from quicknote.backend.core.database import Database
from quicknote.backend.core.logging import get_logger
from quicknote.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database(database: Database | None) -> dict[str, Any]:
    """
    Check note store connectivity.

    Returns:
        Dict with status, latency, and optional error message
    """
    if database is None:
        return {"status": "not_configured"}

    try:
        start = utc_now()
        async with database.session() as session:
            await session.execute(text("SELECT 1"))
        latency_ms = int((utc_now() - start).total_seconds() * 1000)
        return {"status": "healthy", "latency_ms": latency_ms}
    except Exception as e:
        logger.warning("Database health check failed", extra={"error_type": type(e).__name__})
        return {"status": "unhealthy", "error": "database unreachable"}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 if the note store is unreachable.
    """
    from quicknote.backend.core.config import get_app_config

    timeout = get_app_config().application.timeouts.database
    database = getattr(request.app.state, "database", None)

    try:
        result = await asyncio.wait_for(check_database(database), timeout=timeout)
    except asyncio.TimeoutError:
        result = {"status": "unhealthy", "error": "timeout"}

    if result["status"] == "unhealthy":
        raise HTTPException(
            status_code=503,
            detail={"status": "unhealthy", "checks": {"database": result}},
        )

    return {
        "status": "healthy",
        "checks": {"database": result},
        "timestamp": utc_now().isoformat(),
    }
