"""Health check API routes.

Provides:
- GET /health: service status with configuration checks (public)
- GET /health/ping: lightweight 200 for external uptime monitors
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, status

from src.api.deps import AppSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.monotonic()
_VERSION = "1.0.0"


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(config: AppSettings) -> dict[str, Any]:
    """Service health with configuration checks.

    A missing model key reports ``degraded``: the copy-analysis routes
    still work but campaign validation will fail with a configuration
    error. Missing store files only mean the fallbacks are in use.
    """
    checks = {
        "model": "configured" if config.model_configured else "not_configured",
        "best_practices": "file" if config.best_practices_path.is_file() else "defaults",
        "client_context": "available" if config.client_context_dir.is_dir() else "none",
    }
    return {
        "status": "healthy" if config.model_configured else "degraded",
        "checks": checks,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "version": _VERSION,
    }


@router.get("/ping", status_code=status.HTTP_200_OK)
async def ping() -> dict[str, str]:
    """Lightweight ping for external uptime monitors.

    No dependency checks, no auth. Returns 200 with current timestamp.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
    }
