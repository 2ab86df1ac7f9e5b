"""Notification log with an unread flag."""

import logging
from datetime import datetime

from syncthing_connector.models import DirError, Directory, Notification
from syncthing_connector.signals import Signal

logger = logging.getLogger(__name__)


class NotificationAggregator:
    """Collects daemon notifications for one connection.

    The ``unread`` flag is raised by every new notification and only lowered
    by the consumer via ``mark_read``.
    """

    def __init__(self, signal: Signal | None = None) -> None:
        self._signal = signal if signal is not None else Signal("new_notification")
        self.log: list[Notification] = []
        self.unread = False

    def emit(self, when: datetime | None, message: str) -> Notification:
        notification = Notification(when, message)
        self.log.append(notification)
        self.unread = True
        logger.info("Syncthing notification: %s", message)
        self._signal.emit(notification)
        return notification

    def mark_read(self) -> None:
        self.unread = False

    @staticmethod
    def is_new_folder_error(directory: Directory, error: DirError) -> bool:
        """Whether ``error`` was not already reported before the last status transition."""
        return error not in directory.previous_errors
