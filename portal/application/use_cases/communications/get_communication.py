"""Use case for viewing a single communication."""

from sqlalchemy.orm import Session

from portal.domain.entities import Actor, Communication
from portal.domain.errors import AuthorizationError, NotFound
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
)
from portal.utils import now_in_app_timezone


def get_communication(session: Session, actor: Actor, communication_id: int) -> Communication:
    """Return the communication if the actor wrote it, manages it or received it.

    A recipient opening the communication marks its own recipient row as read.
    """

    communication = CommunicationRepository(session).get(communication_id)
    if communication is None:
        raise NotFound("Communication not found")
    if actor.can_manage(communication.sender_id):
        return communication

    recipients = CommunicationRecipientRepository(session)
    if recipients.get_for_user(communication_id, actor.user_id) is None:
        raise AuthorizationError("Not authorized to view this communication")
    recipients.mark_read(communication_id, actor.user_id, read_time=now_in_app_timezone())
    return communication
