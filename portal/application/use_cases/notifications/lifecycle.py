"""Read, display and delete operations on a user's own notifications."""

from __future__ import annotations

from sqlalchemy.orm import Session

from portal.domain.entities import Actor, Notification
from portal.domain.errors import AuthorizationError, NotFound
from portal.infrastructure.repositories import NotificationRepository
from portal.utils import now_in_app_timezone


def _get_owned(
    repository: NotificationRepository, actor: Actor, notification_id: int
) -> Notification:
    notification = repository.get(notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    if not actor.owns(notification.user_id):
        raise AuthorizationError("Not authorized to modify this notification")
    return notification


def mark_notification_read(
    session: Session, actor: Actor, notification_id: int
) -> Notification:
    """Flag the notification as read. Calling it again keeps the first read time."""

    repository = NotificationRepository(session)
    notification = _get_owned(repository, actor, notification_id)
    if notification.is_read:
        return notification
    return repository.mark_read(notification_id, read_at=now_in_app_timezone())


def mark_notification_displayed(
    session: Session, actor: Actor, notification_id: int
) -> Notification:
    """Record that the client surfaced the notification to its owner."""

    repository = NotificationRepository(session)
    notification = _get_owned(repository, actor, notification_id)
    if notification.is_displayed:
        return notification
    return repository.mark_displayed(notification_id, displayed_at=now_in_app_timezone())


def mark_all_notifications_read(session: Session, actor: Actor) -> int:
    """Mark every unread, non-expired notification of the actor. Returns the count."""

    return NotificationRepository(session).mark_all_read_for_user(
        actor.user_id, reference=now_in_app_timezone()
    )


def delete_notification(session: Session, actor: Actor, notification_id: int) -> None:
    repository = NotificationRepository(session)
    _get_owned(repository, actor, notification_id)
    repository.delete(notification_id)


__all__ = [
    "delete_notification",
    "mark_all_notifications_read",
    "mark_notification_displayed",
    "mark_notification_read",
]
