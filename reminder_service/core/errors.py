from typing import List, Optional


class ReminderServiceError(Exception):
    """Base class for errors raised by the reminder service."""


class ConfigurationError(ReminderServiceError):
    """A required secret is missing; fatal to the invocation."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class StoreReadError(ReminderServiceError):
    """A dataset could not be read from the data store."""

    def __init__(self, dataset: str, cause: Optional[BaseException] = None):
        self.dataset = dataset
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to read {dataset}{detail}")


class TelegramError(ReminderServiceError):
    """Transport-level failure talking to the Telegram bot API."""
