"""Use case for scheduling a draft communication."""

from datetime import datetime

from sqlalchemy.orm import Session

from portal.domain.entities import Actor
from portal.infrastructure.notifications import Notifier

from .fan_out import FanOutMode, FanOutOrchestrator, FanOutResult
from .validators import get_managed_communication


def schedule_communication(
    session: Session,
    notifier: Notifier,
    actor: Actor,
    communication_id: int,
    scheduled_for: datetime,
) -> FanOutResult:
    """Pre-compute the ledgers and park the communication until ``scheduled_for``.

    No realtime event is emitted; recipients are notified on dispatch.
    """

    get_managed_communication(session, actor, communication_id)
    return FanOutOrchestrator(session, notifier).fan_out(
        communication_id, mode=FanOutMode.SCHEDULE, scheduled_for=scheduled_for
    )
