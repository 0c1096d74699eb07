"""Use cases listing communications for administrators, senders and recipients."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from portal.domain.entities import (
    Actor,
    Communication,
    CommunicationRecipient,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from portal.domain.errors import AuthorizationError
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
)

from ..communication_stats import CommunicationReadStats, get_read_stats_batch


@dataclass
class CommunicationListing:
    items: list[tuple[Communication, CommunicationReadStats]]
    total: int


@dataclass
class Inbox:
    items: list[tuple[Communication, CommunicationRecipient]]
    total: int
    unread_count: int


def list_admin_communications(
    session: Session,
    actor: Actor,
    *,
    message_type: MessageType | None = None,
    status: CommunicationStatus | None = None,
    recipient_type: RecipientType | None = None,
    sent_from: datetime | None = None,
    sent_to: datetime | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 10,
) -> CommunicationListing:
    """Return every communication matching the filters, with read stats."""

    if not actor.is_elevated:
        raise AuthorizationError("Only administrators can list all communications")
    items, total = CommunicationRepository(session).list_filtered(
        message_type=message_type,
        status=status,
        recipient_type=recipient_type,
        sent_from=sent_from,
        sent_to=sent_to,
        search=search,
        skip=skip,
        limit=limit,
    )
    return _with_read_stats(session, items, total)


def list_sent_communications(
    session: Session, actor: Actor, *, skip: int = 0, limit: int = 10
) -> CommunicationListing:
    """Return the communications authored by ``actor``."""

    items, total = CommunicationRepository(session).list_filtered(
        sender_id=actor.user_id, skip=skip, limit=limit
    )
    return _with_read_stats(session, items, total)


def list_inbox(session: Session, actor: Actor, *, skip: int = 0, limit: int = 10) -> Inbox:
    """Return the communications received by ``actor`` with its own read state."""

    repository = CommunicationRecipientRepository(session)
    items, total = repository.list_inbox(actor.user_id, skip=skip, limit=limit)
    return Inbox(
        items=items,
        total=total,
        unread_count=repository.count_unread_for_user(actor.user_id),
    )


def _with_read_stats(
    session: Session, items: Sequence[Communication], total: int
) -> CommunicationListing:
    stats = get_read_stats_batch(
        session, [item.id for item in items if item.id is not None]
    )
    return CommunicationListing(
        items=[(item, stats.get(item.id, CommunicationReadStats())) for item in items],
        total=total,
    )
