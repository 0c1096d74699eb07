"""Use case for authoring a draft communication."""

from collections.abc import Iterable

from sqlalchemy.orm import Session

from portal.domain.entities import (
    Actor,
    Communication,
    CommunicationPriority,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from portal.infrastructure.repositories import CommunicationRepository

from .audience import resolve_audience
from .validators import (
    ensure_can_author,
    normalize_content,
    normalize_recipient_ids,
    normalize_subject,
)


def create_communication(
    session: Session,
    actor: Actor,
    *,
    subject: str,
    content: str,
    message_type: MessageType,
    recipient_type: RecipientType,
    recipient_ids: Iterable[int] | None = None,
    priority: CommunicationPriority = CommunicationPriority.NORMAL,
    attachment_url: str | None = None,
) -> Communication:
    """Persist a new communication in ``draft`` status authored by ``actor``."""

    ensure_can_author(actor, message_type)
    recipient_ids = normalize_recipient_ids(recipient_type, recipient_ids)
    if recipient_ids:
        resolve_audience(session, RecipientType.SPECIFIC, recipient_ids)

    communication = Communication(
        id=None,
        subject=normalize_subject(subject),
        content=normalize_content(content),
        sender_id=actor.user_id,
        recipient_type=RecipientType(recipient_type),
        message_type=MessageType(message_type),
        status=CommunicationStatus.DRAFT,
        priority=CommunicationPriority(priority),
        recipient_ids=recipient_ids,
        attachment_url=(attachment_url or "").strip() or None,
    )
    return CommunicationRepository(session).create(communication)
