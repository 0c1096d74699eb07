"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from portal.domain.entities import CommunicationPriority, NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    communication_id: int | None = None
    type: NotificationType
    title: str
    message: str
    priority: CommunicationPriority
    payload: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: datetime | None = None
    is_displayed: bool
    displayed_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationRead]
    total: int
    unread_count: int
    page: int
    limit: int
    pages: int


class NotificationStatsRead(BaseModel):
    unread: int
    total: int
    read: int
    by_type: dict[str, int]
    unread_by_priority: dict[str, int]


class MarkAllReadResponse(BaseModel):
    updated: int


class CreateForCommunicationRequest(BaseModel):
    communication_id: int


class CreateForCommunicationResponse(BaseModel):
    message: str
    recipient_count: int
    notification_count: int


__all__ = [
    "CreateForCommunicationRequest",
    "CreateForCommunicationResponse",
    "MarkAllReadResponse",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationStatsRead",
]
