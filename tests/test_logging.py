"""
Tests for structured logging helpers.
"""

from unittest.mock import patch

from subscription_service.logging import get_audit_logger, log_audit_event, setup_logging
from subscription_service.settings import Settings


class TestSetupLogging:
    def test_console_renderer(self):
        setup_logging(Settings(observability={"log_format": "text", "log_level": "DEBUG"}))
        assert get_audit_logger() is not None

    def test_json_renderer(self):
        setup_logging(Settings())
        assert get_audit_logger() is not None


class TestLogAuditEvent:
    def test_emits_to_audit_logger(self):
        with patch("subscription_service.logging.get_audit_logger") as mock_logger:
            log_audit_event(
                "subscription.paused",
                "subscription",
                user_id="u1",
                resource_type="subscription",
                resource_id="s1",
                reason="User requested pause",
            )

        mock_logger.return_value.info.assert_called_once_with(
            "subscription.paused",
            audit_category="subscription",
            audit_user_id="u1",
            audit_resource_type="subscription",
            audit_resource_id="s1",
            reason="User requested pause",
        )

    def test_disabled_by_settings(self, monkeypatch):
        monkeypatch.setenv("BILLING__AUDIT_LOG_ENABLED", "false")

        with patch("subscription_service.logging.get_audit_logger") as mock_logger:
            log_audit_event("subscription.cancelled", "subscription")

        mock_logger.assert_not_called()
