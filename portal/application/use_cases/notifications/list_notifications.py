"""Notification-center queries. Expired entries never show up here."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from portal.domain.entities import (
    Actor,
    CommunicationPriority,
    Notification,
    NotificationType,
)
from portal.infrastructure.repositories import NotificationRepository
from portal.utils import now_in_app_timezone


@dataclass
class NotificationPage:
    items: Sequence[Notification]
    total: int
    unread_count: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


@dataclass
class NotificationStats:
    unread: int
    total: int
    by_type: dict[str, int] = field(default_factory=dict)
    unread_by_priority: dict[str, int] = field(default_factory=dict)

    @property
    def read(self) -> int:
        return self.total - self.unread


def list_notifications(
    session: Session,
    actor: Actor,
    *,
    page: int = 1,
    limit: int = 20,
    notification_type: NotificationType | None = None,
    unread_only: bool = False,
    reference: datetime | None = None,
) -> NotificationPage:
    """Return one page of the actor's notifications, most urgent first."""

    page = max(page, 1)
    reference = reference or now_in_app_timezone()
    repository = NotificationRepository(session)
    items, total = repository.list_for_user(
        actor.user_id,
        reference=reference,
        notification_type=notification_type,
        unread_only=unread_only,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return NotificationPage(
        items=items,
        total=total,
        unread_count=repository.count_unread_for_user(
            actor.user_id, reference=reference
        ),
        page=page,
        limit=limit,
    )


def list_unread_notifications(
    session: Session,
    actor: Actor,
    *,
    limit: int = 50,
    reference: datetime | None = None,
) -> Sequence[Notification]:
    """Return the actor's unread notifications and flag them as displayed.

    The returned entities keep the state they had before the call, so the
    client can tell which ones it is showing for the first time.
    """

    reference = reference or now_in_app_timezone()
    repository = NotificationRepository(session)
    items = repository.list_unread_for_user(
        actor.user_id, reference=reference, limit=limit
    )
    repository.mark_many_displayed(
        [item.id for item in items if not item.is_displayed],
        displayed_at=reference,
    )
    return items


def get_notification_stats(
    session: Session, actor: Actor, *, reference: datetime | None = None
) -> NotificationStats:
    reference = reference or now_in_app_timezone()
    repository = NotificationRepository(session)
    by_type = {notification_type.value: 0 for notification_type in NotificationType}
    by_type.update(repository.count_by_type_for_user(actor.user_id, reference=reference))
    unread_by_priority = {priority.value: 0 for priority in CommunicationPriority}
    unread_by_priority.update(
        repository.count_unread_by_priority_for_user(actor.user_id, reference=reference)
    )
    return NotificationStats(
        unread=repository.count_unread_for_user(actor.user_id, reference=reference),
        total=repository.count_for_user(actor.user_id, reference=reference),
        by_type=by_type,
        unread_by_priority=unread_by_priority,
    )


__all__ = [
    "NotificationPage",
    "NotificationStats",
    "get_notification_stats",
    "list_notifications",
    "list_unread_notifications",
]
