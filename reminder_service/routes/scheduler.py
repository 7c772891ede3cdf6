"""
Control the in-process hourly trigger. Mutating calls require the API key
when one is configured.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from reminder_service.core.models import InvocationResult
from reminder_service.routes.photo import require_api_key_if_configured
from reminder_service.scheduler.service import ReminderScheduler, get_scheduler

router = APIRouter()


def _scheduler_response(scheduler: ReminderScheduler, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"ok": True}
    content.update(extra)
    content["scheduler"] = scheduler.get_status()
    return JSONResponse(status_code=200, content=content)


def _processed(result: Optional[InvocationResult]) -> Optional[int]:
    return result.processed if result is not None else None


@router.get("/scheduler/status")
async def get_scheduler_status() -> JSONResponse:
    return _scheduler_response(get_scheduler())


@router.post("/scheduler/start")
async def start_scheduler(request: Request) -> JSONResponse:
    require_api_key_if_configured(request)
    scheduler = get_scheduler()

    if scheduler.running:
        return _scheduler_response(scheduler, message="Scheduler is already running")

    try:
        await scheduler.start()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to start scheduler: {e}")

    return _scheduler_response(scheduler, message="Scheduler started")


@router.post("/scheduler/stop")
async def stop_scheduler(request: Request) -> JSONResponse:
    require_api_key_if_configured(request)
    scheduler = get_scheduler()

    if not scheduler.running:
        return _scheduler_response(scheduler, message="Scheduler is not running")

    await scheduler.stop()
    return _scheduler_response(scheduler, message="Scheduler stopped")


@router.post("/scheduler/run")
async def run_scheduler_now(request: Request) -> JSONResponse:
    """
    Run both reminder jobs once, outside the schedule.

    The response maps each job to its processed count, or null when the job
    failed. Failures are recorded in /healthz.
    """
    require_api_key_if_configured(request)
    scheduler = get_scheduler()
    results = await scheduler.run_all()

    return _scheduler_response(
        scheduler,
        results={job: _processed(result) for job, result in results.items()},
    )
