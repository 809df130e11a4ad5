"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any

from fastapi import APIRouter, Response
from pydantic import BaseModel

from fieldsales.config import get_settings
from fieldsales.database.connection import check_database_health

settings = get_settings()
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def check_activity_log() -> Dict[str, Any]:
    path = Path(settings.reporting.event_log_path)
    if path.exists():
        return {"status": "healthy", "path": str(path)}
    return {"status": "unhealthy", "error": f"not found: {path}"}


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Database connectivity (primary record source)
    - Activity log presence (fallback record source)
    """
    checks = {}
    overall_status = "healthy"

    checks["database"] = await check_database_health()
    checks["activity_log"] = check_activity_log()

    healthy = [name for name, check in checks.items() if check.get("status") == "healthy"]
    if not healthy:
        overall_status = "unhealthy"
    elif len(healthy) < len(checks):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """
    Kubernetes readiness probe endpoint.

    Ready while at least one record source can serve reports.
    """
    db_health = await check_database_health()
    if db_health.get("status") == "healthy":
        return {"status": "ready"}

    if check_activity_log().get("status") == "healthy":
        return {"status": "ready", "mode": "degraded"}

    response.status_code = 503
    return {"status": "not_ready", "reason": "no_record_source"}
