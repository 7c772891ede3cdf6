import os
import json
import logging
from unittest.mock import patch

from fastapi.testclient import TestClient

from reminder_service.main import app
from reminder_service.routes.health import update_last_run, get_last_runs
from reminder_service.observability.logger import log_event, timing, init_sentry


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_healthz_basic(self):
        """Test basic health check without any run."""
        client = TestClient(app)

        with patch.dict(os.environ, {}, clear=True):
            response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data
        assert data["observability"] == {"enabled": False, "sentry_configured": False}
        assert "last_runs" not in data

    def test_healthz_with_last_runs(self):
        client = TestClient(app)

        update_last_run(job="attendance", processed=2, duration_ms=150.456, success=True)
        update_last_run(job="checklist", processed=0, success=False, error="Failed to read tenants")

        response = client.get("/healthz")

        data = response.json()
        assert data["last_runs"]["attendance"]["processed"] == 2
        assert data["last_runs"]["attendance"]["duration_ms"] == 150.46
        assert data["last_runs"]["attendance"]["success"] is True
        assert data["last_runs"]["checklist"]["success"] is False
        assert data["last_runs"]["checklist"]["error"] == "Failed to read tenants"

    def test_readiness_with_config(self):
        client = TestClient(app)
        env = {
            "SUPABASE_URL": "https://example.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
            "TELEGRAM_BOT_TOKEN": "123:abc",
        }

        with patch.dict(os.environ, env, clear=True):
            response = client.get("/healthz/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"] == {"supabase": "ok", "telegram": "ok", "timezone": "ok"}

    def test_readiness_missing_token(self):
        client = TestClient(app)
        env = {
            "SUPABASE_URL": "https://example.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
        }

        with patch.dict(os.environ, env, clear=True):
            response = client.get("/healthz/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["telegram"] == "missing_config"

    def test_readiness_unknown_default_zone(self):
        client = TestClient(app)
        env = {
            "SUPABASE_URL": "https://example.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
            "TELEGRAM_BOT_TOKEN": "123:abc",
            "DEFAULT_TIMEZONE": "Mars/Olympus",
        }

        with patch.dict(os.environ, env, clear=True):
            response = client.get("/healthz/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["timezone"] == "unknown_zone"

    def test_liveness(self):
        client = TestClient(app)
        response = client.get("/healthz/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestLastRuns:
    def test_latest_run_per_job_wins(self):
        update_last_run(job="attendance", processed=1)
        update_last_run(job="attendance", processed=4)
        assert get_last_runs()["attendance"]["processed"] == 4

    def test_copy_is_returned(self):
        update_last_run(job="attendance", processed=1)
        runs = get_last_runs()
        runs.clear()
        assert "attendance" in get_last_runs()


class TestObservabilityLogger:
    """Test structured logging."""

    def test_log_event_is_json_with_redaction(self, caplog):
        caplog.set_level(logging.INFO, logger="reminder_service.observability.logger")
        log_event(
            action="completed",
            job="attendance",
            processed=2,
            duration_ms=12.3456,
            telegram_bot_token="123:abc",
        )

        data = json.loads(caplog.records[-1].getMessage())
        assert data["action"] == "completed"
        assert data["job"] == "attendance"
        assert data["processed"] == 2
        assert data["duration_ms"] == 12.35
        assert data["telegram_bot_token"] == "[REDACTED]"

    def test_timing_context(self):
        with timing("unit") as timer:
            pass
        assert timer.get_duration_ms() >= 0

    def test_init_sentry_without_dsn(self):
        with patch.dict(os.environ, {}, clear=True):
            assert init_sentry() is False

    def test_init_sentry_with_dsn(self):
        with patch.dict(os.environ, {"OBS_ENABLED": "true", "SENTRY_DSN": "https://key@sentry.example/1"}), \
                patch("sentry_sdk.init") as mock_init:
            assert init_sentry() is True
            mock_init.assert_called_once()
            kwargs = mock_init.call_args.kwargs
            assert kwargs["dsn"] == "https://key@sentry.example/1"
