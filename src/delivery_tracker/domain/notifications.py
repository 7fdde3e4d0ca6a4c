"""Domain models for user-facing notifications."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class NotificationLevel(StrEnum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message surfaced to the operator."""

    title: str
    description: str
    level: NotificationLevel = NotificationLevel.INFO
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
