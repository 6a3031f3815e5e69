"""Notification sinks.

The finalization service reports to the operator only at decision
boundaries: a validation failure, stock warnings needing confirmation,
submission success or failure, and cancellation.  Where those messages
end up is the sink's business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

from modules.notifications.constants import (
    SINK_CELERY,
    SINK_LOGGING,
    NotificationSeverity,
)

logger = structlog.get_logger(__name__)


class INotificationSink(ABC):
    """Fire-and-forget channel to the operator."""

    @abstractmethod
    def notify(
        self, severity: NotificationSeverity, message: str, **context: Any
    ) -> None:
        """Deliver ``message``.  Must not raise on delivery failure."""


class LoggingNotificationSink(INotificationSink):
    """Writes notifications to the structured log."""

    def notify(
        self, severity: NotificationSeverity, message: str, **context: Any
    ) -> None:
        log = logger.bind(severity=str(severity), **context)
        if severity == NotificationSeverity.ERROR:
            log.error("notification.sent", message=message)
        elif severity == NotificationSeverity.WARNING:
            log.warning("notification.sent", message=message)
        else:
            log.info("notification.sent", message=message)


class CeleryNotificationSink(INotificationSink):
    """Hands notifications to the ``notifications.deliver`` task."""

    def notify(
        self, severity: NotificationSeverity, message: str, **context: Any
    ) -> None:
        from modules.notifications.tasks import deliver_notification

        payload = {key: str(value) for key, value in context.items()}
        try:
            deliver_notification.delay(str(severity), message, payload)
        except Exception as exc:
            # Broker outages must not fail the order workflow.
            logger.error(
                "notification.enqueue_failed",
                severity=str(severity),
                message=message,
                error=str(exc),
            )


def build_notification_sink(name: str) -> INotificationSink:
    """Return the sink configured by ``ORDER_NOTIFICATION_SINK``."""
    if name == SINK_CELERY:
        return CeleryNotificationSink()
    if name == SINK_LOGGING:
        return LoggingNotificationSink()
    raise ValueError(f"Unknown notification sink: {name!r}")
