"""
Health endpoints and the per-job record of the most recent reminder run.
"""
import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from reminder_service.core.config import load_config

router = APIRouter()

# Most recent run per job name, overwritten by every invocation
_last_runs: Dict[str, Dict[str, Any]] = {}


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def update_last_run(
    job: str,
    processed: int,
    duration_ms: Optional[float] = None,
    success: bool = True,
    error: Optional[str] = None
) -> None:
    """
    Record the outcome of a reminder run.

    Args:
        job: 'attendance' or 'checklist'
        processed: Reminders confirmed delivered
        duration_ms: Wall time of the run
        success: False when the run aborted
        error: Why the run aborted
    """
    run: Dict[str, Any] = {"time": _utc_stamp(), "processed": processed, "success": success}
    if duration_ms is not None:
        run["duration_ms"] = round(duration_ms, 2)
    if error is not None:
        run["error"] = error
    _last_runs[job] = run


def get_last_runs() -> Dict[str, Dict[str, Any]]:
    return dict(_last_runs)


def _zone_check(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return "unknown_zone"
    return "ok"


@router.get("/healthz")
async def health_check() -> JSONResponse:
    body: Dict[str, Any] = {"status": "ok", "timestamp": _utc_stamp()}

    last_runs = get_last_runs()
    if last_runs:
        body["last_runs"] = last_runs

    body["observability"] = {
        "enabled": os.getenv("OBS_ENABLED", "false").lower() == "true",
        "sentry_configured": bool(os.getenv("SENTRY_DSN")),
    }
    return JSONResponse(status_code=200, content=body)


@router.get("/healthz/ready")
async def readiness_check() -> JSONResponse:
    """Ready once the store and bot secrets are set and the default zone resolves."""
    cfg = load_config()
    checks = {
        "supabase": "ok" if cfg.supabase_url and cfg.supabase_service_key else "missing_config",
        "telegram": "ok" if cfg.telegram_bot_token else "missing_config",
        "timezone": _zone_check(cfg.default_timezone),
    }
    ready = all(status == "ok" for status in checks.values())

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": _utc_stamp(),
            "checks": checks,
        },
    )


@router.get("/healthz/live")
async def liveness_check() -> JSONResponse:
    return JSONResponse(status_code=200, content={"status": "alive", "timestamp": _utc_stamp()})
