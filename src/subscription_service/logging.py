"""
Structured logging setup using structlog directly.

Audit events are plain structured log entries bound to the "audit" logger.
"""

import logging
from typing import Any

import structlog

from subscription_service.settings import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """
    Setup structured logging with structlog.

    Uses settings from centralized configuration.
    """
    settings = settings or get_settings()

    logging.basicConfig(format="%(message)s", level=settings.observability.log_level.value)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.observability.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_audit_logger() -> structlog.BoundLogger:
    """Get a logger specifically for audit events."""
    return structlog.get_logger("audit")


def log_audit_event(
    action: str,
    category: str,
    user_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Log an audit event as a structured log entry.

    The persisted state change history is the system of record; this entry
    mirrors it into the log stream.
    """
    if not get_settings().billing.audit_log_enabled:
        return

    get_audit_logger().info(
        action,
        audit_category=category,
        audit_user_id=user_id,
        audit_resource_type=resource_type,
        audit_resource_id=resource_id,
        **kwargs,
    )
