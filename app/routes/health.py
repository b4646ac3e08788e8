# app/routes/health.py
"""
Health check endpoints for the API and its reporting dependencies.
"""

import time

from fastapi import APIRouter, Depends

from app.config import settings
from app.container import ReportingContainer
from app.infrastructure.observability.logging import log_readiness
from app.routes.dependencies import get_reporting_container

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "jobboard-reports"}


async def _timed_check(name: str, check) -> dict:
    t0 = time.time()
    try:
        result = await check()
        healthy = bool(result.get("healthy", False))
        entry = {"ok": healthy, "latency_ms": round((time.time() - t0) * 1000, 1)}
        if not healthy and "error" in result:
            entry["error"] = result["error"]
    except Exception as e:
        entry = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

    log_readiness(name, entry["ok"], entry["latency_ms"], entry.get("error"))
    return entry


@router.get("/readyz")
async def readyz(container: ReportingContainer = Depends(get_reporting_container)):
    """
    Readiness check covering the database pool, the task queue and report storage.
    """
    checks = {
        "database": await _timed_check("database", container.db.health_check),
        "task_queue": await _timed_check("task_queue", container.queue.health_check),
        "report_storage": await _timed_check("report_storage", container.store.health_check),
    }

    config_issues = []
    if not settings.JWT_SECRET:
        config_issues.append("JWT_SECRET not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }

    overall_ok = all(check["ok"] for check in checks.values())
    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
