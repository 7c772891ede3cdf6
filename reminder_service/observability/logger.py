import os
import time
import json
import logging
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional
from datetime import datetime, timezone

import sentry_sdk

logger = logging.getLogger(__name__)

# Substrings of field names whose values never reach the log
_SENSITIVE_KEYS = ("password", "secret", "key", "token", "auth", "credential")

_MAX_VALUE_LENGTH = 200


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _emit(level: int, entry: Dict[str, Any]) -> None:
    """Write one compact JSON line at the given level."""
    logger.log(level, json.dumps(entry, separators=(',', ':'), default=str))


class TimingContext:
    """Measures the wall time of a reminder run or a single step of it."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self._started: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._started is not None:
            self.duration_ms = (time.perf_counter() - self._started) * 1000

    def get_duration_ms(self) -> Optional[float]:
        return self.duration_ms


@contextmanager
def timing(operation_name: str) -> Iterator[TimingContext]:
    with TimingContext(operation_name) as context:
        yield context


def _sanitize_value(key: str, value: Any) -> Any:
    """Redact secret-looking fields and clip long strings."""
    lowered = key.lower()
    if any(pattern in lowered for pattern in _SENSITIVE_KEYS):
        return "[REDACTED]"

    if isinstance(value, str) and len(value) > _MAX_VALUE_LENGTH:
        return value[:_MAX_VALUE_LENGTH - 3] + "..."

    return value


def log_event(
    action: str,
    job: str,
    processed: int,
    duration_ms: Optional[float] = None,
    **kwargs
) -> None:
    """
    Log the outcome of one reminder run as a single JSON line.

    Args:
        action: What happened to the run ('completed', 'skipped', ...)
        job: 'attendance' or 'checklist'
        processed: Reminders confirmed delivered
        duration_ms: Wall time of the run
        **kwargs: Extra fields; secret-looking keys are redacted
    """
    entry: Dict[str, Any] = {
        "timestamp": _utc_stamp(),
        "action": action,
        "job": job,
        "processed": processed,
    }
    if duration_ms is not None:
        entry["duration_ms"] = round(duration_ms, 2)
    entry.update({k: _sanitize_value(k, v) for k, v in kwargs.items()})

    _emit(logging.INFO, entry)


def log_error(error: Exception, context: Dict[str, Any] = None) -> None:
    entry: Dict[str, Any] = {
        "timestamp": _utc_stamp(),
        "level": "ERROR",
        "error": str(error),
        "error_type": type(error).__name__,
    }
    if context:
        entry.update({k: _sanitize_value(k, v) for k, v in context.items()})

    _emit(logging.ERROR, entry)


def log_warning(message: str, context: Dict[str, Any] = None) -> None:
    entry: Dict[str, Any] = {
        "timestamp": _utc_stamp(),
        "level": "WARNING",
        "message": message,
    }
    if context:
        entry.update({k: _sanitize_value(k, v) for k, v in context.items()})

    _emit(logging.WARNING, entry)


def init_sentry() -> bool:
    """
    Turn on Sentry error reporting.

    Requires OBS_ENABLED=true and a SENTRY_DSN. Reports only errors, so a
    failed reminder run shows up while individual skipped reminders do not.

    Returns:
        True if Sentry was initialized
    """
    if os.getenv("OBS_ENABLED", "false").lower() != "true":
        return False

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        logger.info("OBS_ENABLED is set but SENTRY_DSN is empty; Sentry stays off")
        return False

    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    try:
        sentry_sdk.init(
            dsn=dsn,
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0") or 0.0),
            environment=os.getenv("ENVIRONMENT", "development"),
        )
    except Exception as e:
        logger.error(f"Sentry initialization failed: {e}")
        return False

    logger.info("Sentry initialized")
    return True
