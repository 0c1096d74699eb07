"""Domain entity for a Recipient Ledger row."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CommunicationRecipient:
    """Per-(communication, user) read tracking record."""

    id: int | None
    communication_id: int
    user_id: int
    read_status: bool = False
    read_time: datetime | None = None
    created_at: datetime | None = None
    user_name: str | None = None
    user_email: str | None = None
    user_role: str | None = None


__all__ = ["CommunicationRecipient"]
