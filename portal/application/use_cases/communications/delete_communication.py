"""Use case for deleting a communication together with its ledgers."""

import logging

from sqlalchemy.orm import Session

from portal.domain.entities import Actor
from portal.infrastructure.repositories import CommunicationRepository

from .validators import get_managed_communication

logger = logging.getLogger(__name__)


def delete_communication(session: Session, actor: Actor, communication_id: int) -> None:
    """Remove the recipient rows, the notifications and then the record."""

    get_managed_communication(session, actor, communication_id)
    CommunicationRepository(session).delete(communication_id)
    logger.info("User %s deleted communication %s", actor.user_id, communication_id)
