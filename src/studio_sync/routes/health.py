"""Health route — liveness plus a Cosmos DB probe."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

from studio_sync.health import check_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    """Report dependency health and uptime."""
    settings = request.app.state.settings
    cosmos = request.app.state.cosmos
    checks = [await check_store(cosmos.database, settings.cosmos.container)]
    healthy = all(check["status"] == "healthy" for check in checks)
    return {
        "status": "ok" if healthy else "degraded",
        "environment": settings.app.env,
        "uptime_seconds": round(time.monotonic() - request.app.state.start_time, 1),
        "checks": checks,
    }
