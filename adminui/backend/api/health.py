"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database reachable)
- /health/detailed: Component status including the managed host and bot (token required)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from adminui.backend.core.config import get_app_config
from adminui.backend.core.database import get_session_factory
from adminui.backend.core.dependencies import get_current_operator
from adminui.backend.core.exceptions import ExternalServiceError
from adminui.backend.core.logging import get_logger
from adminui.backend.core.startup_checks import has_ssh_credentials
from adminui.backend.core.utils import utc_now
from adminui.backend.remote.executor import get_remote_executor

router = APIRouter()
logger = get_logger(__name__)

READY_TIMEOUT_SECONDS = 5


async def check_database() -> dict[str, Any]:
    """Run ``SELECT 1`` and report latency."""
    start = utc_now()
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    return {"status": "healthy", "latency_ms": latency_ms}


async def check_remote_host() -> dict[str, Any]:
    """Open an SSH session and run ``true``."""
    if not has_ssh_credentials():
        return {"status": "not_configured"}

    start = utc_now()
    try:
        result = await get_remote_executor().run("true")
    except ExternalServiceError as e:
        return {"status": "unhealthy", "error": e.message}

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    if not result.ok:
        return {"status": "unhealthy", "error": result.error or f"exit {result.exit_status}"}
    return {"status": "healthy", "latency_ms": latency_ms}


def check_telegram() -> dict[str, Any]:
    config = get_app_config()
    if not config.features.channel_telegram_enabled:
        return {"status": "disabled"}
    return {
        "status": "enabled",
        "mode": config.application.telegram.mode,
        "admins": len(config.application.telegram.admin_ids),
    }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    No dependency checks; this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 when the database is unreachable. The managed host is not
    part of readiness: the panel stays usable while it is down.
    """
    try:
        async with asyncio.timeout(READY_TIMEOUT_SECONDS):
            db_result = await check_database()
    except TimeoutError:
        db_result = {"status": "unhealthy", "error": "timed out"}

    checks = {"database": db_result}

    if db_result["status"] == "unhealthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed", dependencies=[Depends(get_current_operator)])
async def detailed_health_check() -> dict[str, Any]:
    """Database, managed host and Telegram channel status with application info. Requires a token."""
    db_result, remote_result = await asyncio.gather(check_database(), check_remote_host())

    checks = {
        "database": db_result,
        "remote_host": remote_result,
        "telegram": check_telegram(),
    }

    app_settings = get_app_config().application
    overall_status = "unhealthy" if db_result["status"] == "unhealthy" else "healthy"
    if overall_status == "healthy" and remote_result["status"] == "unhealthy":
        overall_status = "degraded"

    return {
        "status": overall_status,
        "application": {
            "name": app_settings.name,
            "env": app_settings.environment,
            "debug": app_settings.debug,
            "version": app_settings.version,
        },
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
