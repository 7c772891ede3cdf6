import logging
from dataclasses import dataclass, field
from typing import List, Optional

from reminder_service.channels.telegram_client import TelegramClient, mask_chat_id
from reminder_service.core.errors import TelegramError
from reminder_service.observability.logger import log_error

logger = logging.getLogger(__name__)


@dataclass
class DeliveryFailure:
    chat_id: str
    error: str


@dataclass
class DeliveryReport:
    sent: int = 0
    failures: List[DeliveryFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.sent + len(self.failures)


class Dispatcher:
    """
    Best-effort delivery of reminder messages.

    Each attempt is isolated: a rejected or failed send is logged and recorded
    on the report, and the caller moves on to the next recipient. Nothing is
    retried within the run.
    """

    def __init__(self, client: TelegramClient, report: Optional[DeliveryReport] = None):
        self.client = client
        self.report = report or DeliveryReport()

    async def deliver(self, chat_id: str, text: str) -> bool:
        try:
            result = await self.client.send_message(chat_id, text)
        except TelegramError as e:
            self._record_failure(chat_id, str(e))
            return False

        if not result.ok:
            self._record_failure(chat_id, result.description or "Telegram returned ok=false")
            return False

        self.report.sent += 1
        logger.debug(f"Reminder delivered to {mask_chat_id(chat_id)} (message_id={result.message_id})")
        return True

    def _record_failure(self, chat_id: str, error: str) -> None:
        self.report.failures.append(DeliveryFailure(chat_id=chat_id, error=error))
        log_error(TelegramError(error), {
            "action": "reminder_delivery_failed",
            "chat_id": mask_chat_id(chat_id),
        })
