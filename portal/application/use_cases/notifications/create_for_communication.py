"""Manual repair of the notifications of a sent communication."""

from sqlalchemy.orm import Session

from portal.domain.entities import Actor
from portal.domain.errors import AuthorizationError
from portal.infrastructure.notifications import Notifier

from ..communications.fan_out import FanOutOrchestrator, FanOutResult


def create_notifications_for_communication(
    session: Session, notifier: Notifier, actor: Actor, communication_id: int
) -> FanOutResult:
    """Rebuild the notification rows from the recipient rows and push them again."""

    if not actor.is_elevated:
        raise AuthorizationError("Only administrators can create notifications")
    return FanOutOrchestrator(session, notifier).refresh_notifications(communication_id)
