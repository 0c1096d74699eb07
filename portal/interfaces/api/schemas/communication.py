"""Schemas for communication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.domain.entities import (
    CommunicationPriority,
    CommunicationStatus,
    MessageType,
    RecipientType,
)


class CommunicationCreate(BaseModel):
    subject: str = Field(..., description="Subject line, at most 200 characters")
    content: str
    message_type: MessageType = MessageType.DIRECT
    recipient_type: RecipientType
    recipient_ids: list[int] = Field(
        default_factory=list,
        description="User ids addressed when recipient_type is 'specific'",
    )
    priority: CommunicationPriority = CommunicationPriority.NORMAL
    attachment_url: str | None = None


class CommunicationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject: str | None = None
    content: str | None = None
    message_type: MessageType | None = None
    recipient_type: RecipientType | None = None
    recipient_ids: list[int] | None = None
    priority: CommunicationPriority | None = None
    attachment_url: str | None = None


class CommunicationSchedule(BaseModel):
    scheduled_date: datetime = Field(..., description="Future delivery date")


class CommunicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subject: str
    content: str
    sender_id: int
    sender_name: str | None = None
    recipient_type: RecipientType
    recipient_ids: list[int] = Field(default_factory=list)
    message_type: MessageType
    status: CommunicationStatus
    priority: CommunicationPriority
    sent_date: datetime | None = None
    scheduled_for: datetime | None = None
    attachment_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReadStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipient_count: int
    read_count: int
    unread_count: int
    read_percentage: int


class CommunicationWithStatsRead(CommunicationRead):
    stats: ReadStatsRead


class CommunicationListResponse(BaseModel):
    items: list[CommunicationWithStatsRead]
    total: int
    page: int
    limit: int


class InboxItemRead(CommunicationRead):
    read_status: bool
    read_time: datetime | None = None


class InboxResponse(BaseModel):
    items: list[InboxItemRead]
    total: int
    unread_count: int
    page: int
    limit: int


class FanOutResponse(BaseModel):
    message: str
    communication: CommunicationRead
    recipient_count: int
    notification_count: int


class RecipientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    user_name: str | None = None
    user_email: str | None = None
    user_role: str | None = None
    read_status: bool
    read_time: datetime | None = None


class RecipientListResponse(BaseModel):
    recipients: list[RecipientRead]
    stats: ReadStatsRead


class DispatchDueResponse(BaseModel):
    dispatched_ids: list[int]
    count: int


__all__ = [
    "CommunicationCreate",
    "CommunicationListResponse",
    "CommunicationRead",
    "CommunicationSchedule",
    "CommunicationUpdate",
    "CommunicationWithStatsRead",
    "DispatchDueResponse",
    "FanOutResponse",
    "InboxItemRead",
    "InboxResponse",
    "ReadStatsRead",
    "RecipientListResponse",
    "RecipientRead",
]
