from datetime import datetime, timezone

import pytest

from reminder_service.core.config import AppConfig, ReminderSettings
from reminder_service.routes import health

from fakes import FakeTelegramClient


# 16:00 local in Berlin (CET, UTC+1)
FIXED_NOW = datetime(2025, 3, 1, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def settings():
    return ReminderSettings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        telegram_bot_token="123:abc",
    )


@pytest.fixture
def app_config():
    return AppConfig(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        telegram_bot_token="123:abc",
    )


@pytest.fixture
def telegram():
    return FakeTelegramClient()


@pytest.fixture(autouse=True)
def _clear_last_runs():
    health._last_runs.clear()
    yield
    health._last_runs.clear()
