"""Dashboard statistics schemas."""

from pydantic import BaseModel

from .communication import CommunicationRead


class ReadRateRead(BaseModel):
    total_recipients: int
    total_read: int
    read_rate: int


class CommunicationStatsRead(BaseModel):
    year: int
    total: int
    by_message_type: dict[str, int]
    by_status: dict[str, int]
    monthly: list[int]
    read_rate: ReadRateRead
    read_rate_by_message_type: dict[str, ReadRateRead]
    recent: list[CommunicationRead]


__all__ = ["CommunicationStatsRead", "ReadRateRead"]
