"""
GET|POST /reminders/attendance and /reminders/checklist: run one reminder
invocation. Called hourly by cron, or manually with a POST.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from reminder_service.core.models import InvocationResult
from reminder_service.reminders import runner
from reminder_service.reminders.gate import is_authorized

logger = logging.getLogger(__name__)

router = APIRouter()


def _success(result: InvocationResult) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "processed": result.processed,
            "timestamp": result.timestamp.isoformat(),
        },
    )


def _failure(error: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": str(error)})


async def _run(job: str) -> JSONResponse:
    try:
        result = await runner.invoke(job)
    except Exception as e:
        logger.error(f"Error in {job} reminders: {e}")
        return _failure(e)
    return _success(result)


@router.api_route("/reminders/attendance", methods=["GET", "POST"])
async def send_attendance_reminders(request: Request):
    if not is_authorized(request.method, request.headers.get("authorization")):
        return PlainTextResponse("Unauthorized", status_code=401)
    return await _run("attendance")


@router.api_route("/reminders/checklist", methods=["GET", "POST"])
async def send_checklist_reminders():
    return await _run("checklist")
