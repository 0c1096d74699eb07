"""Domain entity representing an authored communication."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MessageType(str, Enum):
    ANNOUNCEMENT = "announcement"
    NEWSLETTER = "newsletter"
    DIRECT = "direct"


class RecipientType(str, Enum):
    """Audience policy of a communication."""

    ALL = "all"
    ADMIN = "admin"
    SPECIFIC = "specific"


class CommunicationStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"


class CommunicationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


# Message kinds that only elevated users may author.
RESTRICTED_MESSAGE_TYPES = frozenset({MessageType.ANNOUNCEMENT, MessageType.NEWSLETTER})


@dataclass
class Communication:
    """Source of truth for what was said and to whom it was addressed."""

    id: int | None
    subject: str
    content: str
    sender_id: int
    recipient_type: RecipientType
    message_type: MessageType
    status: CommunicationStatus = CommunicationStatus.DRAFT
    priority: CommunicationPriority = CommunicationPriority.NORMAL
    recipient_ids: list[int] = field(default_factory=list)
    sent_date: datetime | None = None
    scheduled_for: datetime | None = None
    attachment_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    sender_name: str | None = None

    @property
    def is_draft(self) -> bool:
        return self.status is CommunicationStatus.DRAFT


__all__ = [
    "Communication",
    "CommunicationPriority",
    "CommunicationStatus",
    "MessageType",
    "RESTRICTED_MESSAGE_TYPES",
    "RecipientType",
]
