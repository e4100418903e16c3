"""Transient user-visible notifications.

The form never renders anything itself. Every message the user should see
goes through a ``Notifier``; what it does with it (log, print, collect) is
up to the host.
"""

import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    """Severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    LOADING = "loading"


class Notification(BaseModel):
    """A single message for the user."""

    level: NotificationLevel
    title: str
    description: str | None = None
    duration_ms: int | None = None


class Notifier(Protocol):
    """Anything that can show notifications."""

    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Writes notifications to the log."""

    _LEVELS = {
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.LOADING: logging.INFO,
        NotificationLevel.ERROR: logging.WARNING,
    }

    def notify(self, notification: Notification) -> None:
        text = notification.title
        if notification.description:
            text = f"{text}: {notification.description}"
        logger.log(self._LEVELS[notification.level], f"[{notification.level.value}] {text}")


class RecordingNotifier:
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def of_level(self, level: NotificationLevel) -> list[Notification]:
        return [n for n in self.notifications if n.level == level]

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None
