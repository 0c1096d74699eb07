"""Read-only statistics over communications and their ledgers."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import case, extract, func
from sqlalchemy.orm import Session

from portal.domain.entities import Communication, CommunicationStatus, MessageType
from portal.infrastructure.models import CommunicationModel, CommunicationRecipientModel
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
)
from portal.utils import ensure_app_naive_datetime, now_in_app_timezone, year_bounds

RECENT_COMMUNICATIONS_LIMIT = 5


def read_percentage(read_count: int, recipient_count: int) -> int:
    """Return ``read / total * 100`` rounded half up, or 0 without recipients."""

    if recipient_count <= 0:
        return 0
    return math.floor(read_count * 100 / recipient_count + 0.5)


@dataclass(frozen=True)
class CommunicationReadStats:
    recipient_count: int = 0
    read_count: int = 0

    @property
    def unread_count(self) -> int:
        return self.recipient_count - self.read_count

    @property
    def read_percentage(self) -> int:
        return read_percentage(self.read_count, self.recipient_count)


@dataclass(frozen=True)
class ReadRate:
    total_recipients: int = 0
    total_read: int = 0

    @property
    def read_rate(self) -> int:
        return read_percentage(self.total_read, self.total_recipients)


@dataclass
class CommunicationStatsSummary:
    """Fleet-wide dashboard figures."""

    year: int
    total: int
    by_message_type: dict[str, int]
    by_status: dict[str, int]
    monthly: list[int]
    read_rate: ReadRate
    read_rate_by_message_type: dict[str, ReadRate]
    recent: Sequence[Communication] = field(default_factory=list)


def get_read_stats(session: Session, communication_id: int) -> CommunicationReadStats:
    return get_read_stats_batch(session, [communication_id])[communication_id]


def get_read_stats_batch(
    session: Session, communication_ids: Sequence[int]
) -> dict[int, CommunicationReadStats]:
    """Return read stats for every id, including ids without recipients."""

    counts = CommunicationRecipientRepository(session).count_by_communication(
        communication_ids
    )
    return {
        communication_id: CommunicationReadStats(*counts.get(communication_id, (0, 0)))
        for communication_id in communication_ids
    }


def get_communication_stats(
    session: Session, *, reference: datetime | None = None
) -> CommunicationStatsSummary:
    """Aggregate volumes and read rates for the dashboard.

    The monthly series covers the twelve months of ``reference``'s year,
    counted by sent date.
    """

    reference = reference or now_in_app_timezone()
    by_message_type = {message_type.value: 0 for message_type in MessageType}
    by_message_type.update(_count_grouped(session, CommunicationModel.message_type))
    by_status = {status.value: 0 for status in CommunicationStatus}
    by_status.update(_count_grouped(session, CommunicationModel.status))

    read_by_type = _read_counts_by_message_type(session)
    total_recipients = sum(rate.total_recipients for rate in read_by_type.values())
    total_read = sum(rate.total_read for rate in read_by_type.values())

    return CommunicationStatsSummary(
        year=reference.year,
        total=sum(by_status.values()),
        by_message_type=by_message_type,
        by_status=by_status,
        monthly=_monthly_volume(session, reference.year),
        read_rate=ReadRate(total_recipients=total_recipients, total_read=total_read),
        read_rate_by_message_type={
            message_type.value: read_by_type.get(message_type.value, ReadRate())
            for message_type in MessageType
        },
        recent=CommunicationRepository(session).list_recent_sent(
            RECENT_COMMUNICATIONS_LIMIT
        ),
    )


def _count_grouped(session: Session, column) -> dict[str, int]:
    rows = (
        session.query(column, func.count(CommunicationModel.id))
        .group_by(column)
        .all()
    )
    return {value: int(count) for value, count in rows}


def _monthly_volume(session: Session, year: int) -> list[int]:
    start, end = (ensure_app_naive_datetime(value) for value in year_bounds(year))
    month = extract("month", CommunicationModel.sent_date)
    rows = (
        session.query(month, func.count(CommunicationModel.id))
        .filter(CommunicationModel.status == CommunicationStatus.SENT.value)
        .filter(CommunicationModel.sent_date >= start)
        .filter(CommunicationModel.sent_date < end)
        .group_by(month)
        .all()
    )
    volume = [0] * 12
    for month_number, count in rows:
        volume[int(month_number) - 1] = int(count)
    return volume


def _read_counts_by_message_type(session: Session) -> dict[str, ReadRate]:
    read_sum = func.sum(
        case((CommunicationRecipientModel.read_status.is_(True), 1), else_=0)
    )
    rows = (
        session.query(
            CommunicationModel.message_type,
            func.count(CommunicationRecipientModel.id),
            read_sum,
        )
        .select_from(CommunicationRecipientModel)
        .join(
            CommunicationModel,
            CommunicationRecipientModel.communication_id == CommunicationModel.id,
        )
        .group_by(CommunicationModel.message_type)
        .all()
    )
    return {
        message_type: ReadRate(
            total_recipients=int(total or 0), total_read=int(read or 0)
        )
        for message_type, total, read in rows
    }


__all__ = [
    "CommunicationReadStats",
    "CommunicationStatsSummary",
    "ReadRate",
    "get_communication_stats",
    "get_read_stats",
    "get_read_stats_batch",
    "read_percentage",
]
