import os
from typing import Optional

from pydantic import BaseModel

from reminder_service.core.errors import ConfigurationError


DEFAULT_TIMEZONE = "Europe/Berlin"


class AppConfig(BaseModel):
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    default_timezone: str = DEFAULT_TIMEZONE
    api_key: Optional[str] = None
    run_scheduler: bool = False
    scheduler_cron: str = "0 * * * *"
    scheduler_timezone: str = "UTC"
    attendance_page_size: int = 100
    checklist_page_size: int = 500
    telegram_timeout_seconds: float = 15.0


class ReminderSettings(BaseModel):
    """Settings for one reminder invocation, handed to every component."""

    supabase_url: str
    supabase_service_key: str
    telegram_bot_token: str
    default_timezone: str = DEFAULT_TIMEZONE
    attendance_page_size: int = 100
    checklist_page_size: int = 500
    telegram_timeout_seconds: float = 15.0


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw and raw.isdigit() else default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def load_config() -> AppConfig:
    return AppConfig(
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_service_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        default_timezone=os.getenv("DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
        api_key=os.getenv("API_KEY") or None,
        run_scheduler=os.getenv("RUN_SCHEDULER", "0") == "1",
        scheduler_cron=os.getenv("SCHEDULER_CRON", "0 * * * *"),
        scheduler_timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"),
        attendance_page_size=_int_env("ATTENDANCE_PAGE_SIZE", 100),
        checklist_page_size=_int_env("CHECKLIST_PAGE_SIZE", 500),
        telegram_timeout_seconds=_float_env("TELEGRAM_TIMEOUT_SECONDS", 15.0),
    )


def require_reminder_settings(cfg: Optional[AppConfig] = None) -> ReminderSettings:
    """
    Build the settings for one reminder invocation.

    Args:
        cfg: Loaded application config. If None, the environment is read.

    Returns:
        ReminderSettings with every required secret present

    Raises:
        ConfigurationError: If the store URL, store credential or bot token is missing
    """
    cfg = cfg or load_config()

    required = {
        "SUPABASE_URL": cfg.supabase_url,
        "SUPABASE_SERVICE_ROLE_KEY": cfg.supabase_service_key,
        "TELEGRAM_BOT_TOKEN": cfg.telegram_bot_token,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise ConfigurationError(missing)

    return ReminderSettings(
        supabase_url=cfg.supabase_url,
        supabase_service_key=cfg.supabase_service_key,
        telegram_bot_token=cfg.telegram_bot_token,
        default_timezone=cfg.default_timezone,
        attendance_page_size=cfg.attendance_page_size,
        checklist_page_size=cfg.checklist_page_size,
        telegram_timeout_seconds=cfg.telegram_timeout_seconds,
    )
