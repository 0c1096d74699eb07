"""Shared checks for communication use cases."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from portal.domain.entities import (
    RESTRICTED_MESSAGE_TYPES,
    Actor,
    Communication,
    MessageType,
    RecipientType,
)
from portal.domain.errors import AuthorizationError, NotFound, ValidationError
from portal.infrastructure.repositories import CommunicationRepository

SUBJECT_MAX_LENGTH = 200


def normalize_subject(subject: str | None) -> str:
    value = (subject or "").strip()
    if not value:
        raise ValidationError("Subject is required")
    if len(value) > SUBJECT_MAX_LENGTH:
        raise ValidationError(
            f"Subject cannot be longer than {SUBJECT_MAX_LENGTH} characters"
        )
    return value


def normalize_content(content: str | None) -> str:
    value = (content or "").strip()
    if not value:
        raise ValidationError("Content is required")
    return value


def ensure_can_author(actor: Actor, message_type: MessageType) -> None:
    """Announcements and newsletters may only be written by elevated users."""

    if MessageType(message_type) in RESTRICTED_MESSAGE_TYPES and not actor.is_elevated:
        raise AuthorizationError(
            f"Only administrators can create {MessageType(message_type).value} messages"
        )


def normalize_recipient_ids(
    recipient_type: RecipientType, recipient_ids: Iterable[int] | None
) -> list[int]:
    """Return the explicit id list stored with the communication.

    Duplicates are collapsed and the list is dropped for every policy other
    than ``specific``. Whether the ids are active users is checked by the
    audience resolver.
    """

    if RecipientType(recipient_type) is not RecipientType.SPECIFIC:
        return []
    unique_ids = sorted({int(user_id) for user_id in recipient_ids or []})
    if not unique_ids:
        raise ValidationError("Specific recipients are required")
    return unique_ids


def get_managed_communication(
    session: Session, actor: Actor, communication_id: int
) -> Communication:
    """Load a communication the actor may modify, send or delete."""

    communication = CommunicationRepository(session).get(communication_id)
    if communication is None:
        raise NotFound("Communication not found")
    if not actor.can_manage(communication.sender_id):
        raise AuthorizationError("Not authorized to manage this communication")
    return communication


__all__ = [
    "SUBJECT_MAX_LENGTH",
    "ensure_can_author",
    "get_managed_communication",
    "normalize_content",
    "normalize_recipient_ids",
    "normalize_subject",
]
