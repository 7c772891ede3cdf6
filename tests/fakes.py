from typing import List, Optional

from reminder_service.channels.telegram_client import TelegramResult
from reminder_service.core.errors import TelegramError


class FakeTelegramClient:
    """Records sends; chat ids in reject answer ok=false, in explode raise."""

    def __init__(self, reject: Optional[List[str]] = None, explode: Optional[List[str]] = None):
        self.reject = set(reject or [])
        self.explode = set(explode or [])
        self.messages: List[tuple] = []
        self.photos: List[tuple] = []

    async def send_message(self, chat_id, text, parse_mode="Markdown"):
        self.messages.append((chat_id, text))
        if chat_id in self.explode:
            raise TelegramError("Telegram sendMessage request timed out")
        if chat_id in self.reject:
            return TelegramResult(ok=False, description="Bad Request: chat not found")
        return TelegramResult(ok=True, message_id=len(self.messages))

    async def send_photo(self, chat_id, photo_url):
        self.photos.append((chat_id, photo_url))
        return TelegramResult(ok=True, message_id=1)
