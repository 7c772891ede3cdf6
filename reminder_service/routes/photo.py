"""
POST /send-photo: forward a photo URL to a Telegram chat.
"""
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from reminder_service.channels.telegram_client import TelegramClient, mask_chat_id
from reminder_service.core.config import load_config
from reminder_service.core.errors import TelegramError

logger = logging.getLogger(__name__)

router = APIRouter()


def require_api_key_if_configured(request: Request) -> None:
    cfg = load_config()
    if not cfg.api_key:
        return
    provided = request.headers.get("x-api-key") or request.headers.get("X-API-Key")
    if provided != cfg.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


@router.post("/send-photo")
async def send_photo(request: Request) -> JSONResponse:
    require_api_key_if_configured(request)

    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    url = body.get("url")
    chat_id = body.get("chat_id")
    if not url or not chat_id:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required parameters: url and chat_id"},
        )

    cfg = load_config()
    if not cfg.telegram_bot_token:
        return JSONResponse(status_code=500, content={"error": "TELEGRAM_BOT_TOKEN not configured"})

    client = TelegramClient(cfg.telegram_bot_token, timeout=cfg.telegram_timeout_seconds)
    try:
        result = await client.send_photo(str(chat_id), str(url))
    except TelegramError as e:
        logger.error(f"Error in send-photo: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    if not result.ok:
        logger.error(f"Telegram API error for {mask_chat_id(str(chat_id))}: {result.description}")
        return JSONResponse(
            status_code=500,
            content={"error": result.description or "Failed to send photo"},
        )

    return JSONResponse(status_code=200, content={"success": True, "message_id": result.message_id})
