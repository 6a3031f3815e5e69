"""Asynchronous notification delivery."""

import structlog
from celery import shared_task

from modules.notifications.constants import NotificationSeverity

logger = structlog.get_logger(__name__)

_LOG_METHODS = {
    NotificationSeverity.INFO: "info",
    NotificationSeverity.SUCCESS: "info",
    NotificationSeverity.WARNING: "warning",
    NotificationSeverity.ERROR: "error",
}


@shared_task(name="notifications.deliver")
def deliver_notification(severity, message, context=None):
    """Deliver one operator notification.

    The worker has no UI to push to; it records the notification so a
    log shipper or dashboard can pick it up.
    """
    level = NotificationSeverity(severity)
    log = logger.bind(severity=level.value, **(context or {}))
    getattr(log, _LOG_METHODS[level])("notification.delivered", message=message)
    return {"severity": level.value, "message": message}
