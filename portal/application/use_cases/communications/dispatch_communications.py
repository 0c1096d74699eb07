"""Use cases that deliver scheduled communications."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.config import get_settings
from portal.domain.entities import Actor
from portal.domain.errors import PortalError
from portal.infrastructure.notifications import Notifier
from portal.infrastructure.repositories import CommunicationRepository
from portal.utils import now_in_app_timezone

from .fan_out import FanOutMode, FanOutOrchestrator, FanOutResult
from .send_communication import mirror_communication_by_email
from .validators import get_managed_communication

logger = logging.getLogger(__name__)


def dispatch_scheduled_communication(
    session: Session, notifier: Notifier, actor: Actor, communication_id: int
) -> FanOutResult:
    """Deliver a scheduled communication now, whatever its scheduled date."""

    get_managed_communication(session, actor, communication_id)
    return _dispatch(session, notifier, communication_id)


def dispatch_due_communications(
    session: Session, notifier: Notifier, *, now: datetime | None = None
) -> list[int]:
    """Dispatch every scheduled communication whose date has passed.

    A failing item is logged and skipped so the rest of the sweep still runs.
    Returns the ids that were dispatched.
    """

    reference = now or now_in_app_timezone()
    due = CommunicationRepository(session).list_due_scheduled(reference)
    dispatched: list[int] = []
    for communication in due:
        try:
            _dispatch(session, notifier, communication.id)
        except (PortalError, SQLAlchemyError) as exc:
            session.rollback()
            logger.error(
                "Dispatch of communication %s failed: %s", communication.id, exc
            )
            continue
        dispatched.append(communication.id)
    if due:
        logger.info("Dispatched %s of %s due communications", len(dispatched), len(due))
    return dispatched


def _dispatch(session: Session, notifier: Notifier, communication_id: int) -> FanOutResult:
    result = FanOutOrchestrator(session, notifier).fan_out(
        communication_id, mode=FanOutMode.DISPATCH
    )
    if get_settings().communication_email_enabled:
        mirror_communication_by_email(session, result)
    return result
