"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .communication import CommunicationPriority


class NotificationType(str, Enum):
    COMMUNICATION = "communication"
    ANNOUNCEMENT = "announcement"
    SYSTEM = "system"


NEW_NOTIFICATION_EVENT = "new_notification"


@dataclass
class Notification:
    """Notification-center entry delivered to a specific user."""

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    communication_id: int | None = None
    priority: CommunicationPriority = CommunicationPriority.NORMAL
    payload: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    is_displayed: bool = False
    displayed_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None


__all__ = ["NEW_NOTIFICATION_EVENT", "Notification", "NotificationType"]
