"""Use case for sending a draft communication right away."""

import logging

from sqlalchemy.orm import Session

from portal.config import get_settings
from portal.domain.entities import Actor
from portal.infrastructure.email import send_communication_email
from portal.infrastructure.notifications import Notifier
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    UserRepository,
)

from .fan_out import FanOutMode, FanOutOrchestrator, FanOutResult
from .validators import get_managed_communication

logger = logging.getLogger(__name__)


def send_communication(
    session: Session, notifier: Notifier, actor: Actor, communication_id: int
) -> FanOutResult:
    """Fan the draft out to its audience and mark it as sent."""

    get_managed_communication(session, actor, communication_id)
    result = FanOutOrchestrator(session, notifier).fan_out(
        communication_id, mode=FanOutMode.SEND
    )
    if get_settings().communication_email_enabled:
        mirror_communication_by_email(session, result)
    return result


def mirror_communication_by_email(session: Session, result: FanOutResult) -> int:
    """Best-effort email copy of a sent communication to its recipients."""

    communication = result.communication
    try:
        user_ids = CommunicationRecipientRepository(session).list_user_ids(
            communication.id
        )
        users = UserRepository(session).get_map_by_ids(user_ids).values()
        delivered = send_communication_email(communication, users)
    except Exception as exc:
        logger.warning(
            "Email copy of communication %s failed: %s", communication.id, exc
        )
        return 0
    logger.info(
        "Emailed communication %s to %s of %s recipients",
        communication.id,
        delivered,
        result.recipient_count,
    )
    return delivered
