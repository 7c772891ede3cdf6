"""
Telegram client for delivering reminder messages.

This module wraps the two Telegram Bot API methods the service needs,
sendMessage and sendPhoto, and parses the {ok, result, description}
envelope every Bot API call answers with.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from reminder_service.core.errors import TelegramError

logger = logging.getLogger(__name__)


@dataclass
class TelegramResult:
    """Parsed Bot API envelope."""
    ok: bool
    message_id: Optional[int] = None
    description: Optional[str] = None

    @classmethod
    def from_envelope(cls, envelope: Dict[str, Any]) -> "TelegramResult":
        result = envelope.get("result") or {}
        message_id = result.get("message_id") if isinstance(result, dict) else None
        return cls(
            ok=bool(envelope.get("ok")),
            message_id=message_id,
            description=envelope.get("description"),
        )


class TelegramClient:
    """Minimal async Telegram Bot API client."""

    def __init__(self, bot_token: str, timeout: float = 15.0):
        """
        Initialize Telegram client.

        Args:
            bot_token: Bot token issued by BotFather
            timeout: Request timeout in seconds
        """
        self.bot_token = bot_token
        self.base_url = "https://api.telegram.org"
        self.timeout = timeout

    def _method_url(self, method: str) -> str:
        return f"{self.base_url}/bot{self.bot_token}/{method}"

    async def _call(self, method: str, payload: Dict[str, Any]) -> TelegramResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self._method_url(method), json=payload)
        except httpx.TimeoutException:
            raise TelegramError(f"Telegram {method} request timed out")
        except httpx.HTTPError as e:
            raise TelegramError(f"Telegram {method} transport error: {e}")

        # The Bot API answers errors with a JSON envelope and a 4xx status
        try:
            envelope = response.json()
        except ValueError:
            return TelegramResult(
                ok=False,
                description=f"HTTP {response.status_code}: {response.text[:200]}",
            )
        if not isinstance(envelope, dict):
            return TelegramResult(ok=False, description=f"HTTP {response.status_code}: unexpected body")

        result = TelegramResult.from_envelope(envelope)
        if result.ok and response.status_code >= 400:
            result.ok = False
        return result

    async def send_message(self, chat_id: str, text: str, parse_mode: str = "Markdown") -> TelegramResult:
        """
        Send a text message to a chat.

        Args:
            chat_id: Target chat id
            text: Message body
            parse_mode: Telegram parse mode for the body

        Returns:
            TelegramResult parsed from the API response

        Raises:
            TelegramError: If the request could not be completed
        """
        return await self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text, "parse_mode": parse_mode},
        )

    async def send_photo(self, chat_id: str, photo_url: str) -> TelegramResult:
        """Send a photo by URL to a chat."""
        return await self._call("sendPhoto", {"chat_id": chat_id, "photo": photo_url})


def mask_chat_id(chat_id: Optional[str]) -> str:
    """Keep only the last four characters of a chat id for logs."""
    if not chat_id:
        return "<none>"
    chat_id = str(chat_id)
    if len(chat_id) <= 4:
        return "***" + chat_id[-1:]
    return "***" + chat_id[-4:]
