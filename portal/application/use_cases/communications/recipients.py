"""Use cases over the recipient rows of a communication."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from portal.domain.entities import Actor, CommunicationRecipient
from portal.domain.errors import NotFound
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
)
from portal.utils import now_in_app_timezone

from ..communication_stats import CommunicationReadStats
from .validators import get_managed_communication


def list_communication_recipients(
    session: Session, actor: Actor, communication_id: int
) -> tuple[Sequence[CommunicationRecipient], CommunicationReadStats]:
    """Return the recipient rows (unread first) and their read stats."""

    get_managed_communication(session, actor, communication_id)
    recipients = CommunicationRecipientRepository(session).list_for_communication(
        communication_id
    )
    read_count = sum(1 for recipient in recipients if recipient.read_status)
    return recipients, CommunicationReadStats(
        recipient_count=len(recipients), read_count=read_count
    )


def mark_communication_read(
    session: Session, actor: Actor, communication_id: int
) -> CommunicationRecipient:
    """Mark the actor's own recipient row as read; repeated calls are no-ops."""

    if CommunicationRepository(session).get(communication_id) is None:
        raise NotFound("Communication not found")
    recipient = CommunicationRecipientRepository(session).mark_read(
        communication_id, actor.user_id, read_time=now_in_app_timezone()
    )
    if recipient is None:
        raise NotFound("You are not a recipient of this communication")
    return recipient


__all__ = ["list_communication_recipients", "mark_communication_read"]
