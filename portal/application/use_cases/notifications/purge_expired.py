"""TTL sweep for the Notification Ledger."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from portal.infrastructure.repositories import NotificationRepository
from portal.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def purge_expired_notifications(session: Session, *, now: datetime | None = None) -> int:
    """Delete notifications whose expiry has passed. Returns the number removed."""

    deleted = NotificationRepository(session).delete_expired(now or now_in_app_timezone())
    logger.info("Purged %s expired notifications", deleted)
    return deleted
