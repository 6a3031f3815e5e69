"""Notification constants."""

from enum import StrEnum


class NotificationSeverity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


SINK_LOGGING = "logging"
SINK_CELERY = "celery"
