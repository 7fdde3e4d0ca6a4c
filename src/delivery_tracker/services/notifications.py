"""Notification side channel for user-facing messages."""

from collections import deque
from typing import Protocol

from delivery_tracker.domain.notifications import Notification, NotificationLevel


class Notifier(Protocol):
    """Interface for surfacing messages to the operator."""

    def notify(self, notification: Notification) -> None:
        """Publish a notification."""


class InMemoryNotifier(Notifier):
    """Bounded in-memory queue drained by the UI."""

    def __init__(self, limit: int = 50) -> None:
        self._pending: deque[Notification] = deque(maxlen=limit)

    def notify(self, notification: Notification) -> None:
        """Queue a notification, dropping the oldest when full."""
        self._pending.append(notification)

    def drain(self) -> list[Notification]:
        """Return and clear all pending notifications."""
        drained = list(self._pending)
        self._pending.clear()
        return drained


def info(title: str, description: str) -> Notification:
    return Notification(title=title, description=description)


def error(title: str, description: str) -> Notification:
    return Notification(
        title=title, description=description, level=NotificationLevel.ERROR
    )
