"""Use case for editing a draft communication."""

from collections.abc import Iterable
from dataclasses import replace

from sqlalchemy.orm import Session

from portal.domain.entities import (
    Actor,
    Communication,
    CommunicationPriority,
    MessageType,
    RecipientType,
)
from portal.domain.errors import InvalidState
from portal.infrastructure.repositories import CommunicationRepository

from .audience import resolve_audience
from .validators import (
    ensure_can_author,
    get_managed_communication,
    normalize_content,
    normalize_recipient_ids,
    normalize_subject,
)


def update_communication(
    session: Session,
    actor: Actor,
    communication_id: int,
    *,
    subject: str | None = None,
    content: str | None = None,
    message_type: MessageType | None = None,
    recipient_type: RecipientType | None = None,
    recipient_ids: Iterable[int] | None = None,
    priority: CommunicationPriority | None = None,
    attachment_url: str | None = None,
) -> Communication:
    """Apply the provided changes; only drafts can be edited."""

    current = get_managed_communication(session, actor, communication_id)
    if not current.is_draft:
        raise InvalidState("Only draft communications can be updated")

    new_message_type = MessageType(message_type or current.message_type)
    ensure_can_author(actor, new_message_type)

    new_recipient_type = RecipientType(recipient_type or current.recipient_type)
    new_recipient_ids = normalize_recipient_ids(
        new_recipient_type,
        recipient_ids if recipient_ids is not None else current.recipient_ids,
    )
    if new_recipient_ids:
        resolve_audience(session, RecipientType.SPECIFIC, new_recipient_ids)

    updated = replace(
        current,
        subject=normalize_subject(subject) if subject is not None else current.subject,
        content=normalize_content(content) if content is not None else current.content,
        message_type=new_message_type,
        recipient_type=new_recipient_type,
        recipient_ids=new_recipient_ids,
        priority=CommunicationPriority(priority or current.priority),
        attachment_url=(
            (attachment_url.strip() or None)
            if attachment_url is not None
            else current.attachment_url
        ),
    )
    stored = CommunicationRepository(session).update(updated)
    if stored is None:
        raise InvalidState("Only draft communications can be updated")
    return stored
