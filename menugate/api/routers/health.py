"""Health check endpoints for menugate.

Provides Kubernetes-compatible health checks:
- /health: Basic health check
- /health/live: Liveness check (is the app running?)
- /health/ready: Readiness check (can the access store be reached?)
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menugate import __version__
from menugate.api.deps import get_db

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    started = time.monotonic()
    try:
        db.execute(text("SELECT 1")).fetchone()
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }

    return {
        "status": "healthy",
        "latency_ms": round((time.monotonic() - started) * 1000, 2),
        "dialect": db.get_bind().dialect.name,
    }


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if the application is running.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": _now(),
    }


@router.get("/health/live")
async def liveness_check():
    """
    Kubernetes liveness check.

    This check should be fast and not depend on external services.
    """
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "alive",
            "timestamp": _now(),
        },
    )


@router.get("/health/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """
    Kubernetes readiness check.

    Failure means traffic should not be routed to this instance.
    """
    checks = {
        "database": check_database(db),
    }

    unhealthy = [name for name, check in checks.items() if check["status"] == "unhealthy"]

    if unhealthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "checks": checks,
                "failed": unhealthy,
                "timestamp": _now(),
            },
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "checks": checks,
            "timestamp": _now(),
        },
    )
