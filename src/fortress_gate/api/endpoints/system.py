"""Service status endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter

from fortress_gate.api.dependencies import SessionGuard, TrackerDep, UpstreamDep
from fortress_gate.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"], dependencies=[SessionGuard])


@router.get("/status")
async def get_system_status(tracker: TrackerDep, upstream: UpstreamDep) -> dict[str, object]:
    """Get gateway status for the operator dashboard.

    Args:
        tracker: Login attempt tracker
        upstream: Fortress API client

    Returns:
        Dictionary with service information, login throttling state and
        proxy metrics
    """
    return {
        "service": "fortress-gate",
        "version": settings.app_version,
        "status": "operational",
        "timestamp": int(time.time()),
        "environment": "production" if not settings.debug else "development",
        "login_protection": {
            "max_attempts": tracker.max_attempts,
            "window_seconds": tracker.window_seconds,
            "tracked_sources": len(tracker),
            "sweeper_running": tracker.running,
        },
        "upstream": {
            "base_url": upstream.config.base_url,
            "path_prefix": upstream.config.path_prefix,
            "metrics": upstream.get_metrics(),
        },
    }
