"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from portal.domain.entities import (
    CommunicationPriority,
    Notification,
    NotificationType,
)
from portal.infrastructure.models import NotificationModel
from portal.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

_PRIORITY_RANK = case(
    (NotificationModel.priority == CommunicationPriority.URGENT.value, 3),
    (NotificationModel.priority == CommunicationPriority.HIGH.value, 2),
    (NotificationModel.priority == CommunicationPriority.NORMAL.value, 1),
    else_=0,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Every listing and counting helper takes a ``reference`` instant and hides
    entries whose ``expires_at`` lies before it, whether or not the TTL sweep
    has removed them yet.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def replace_for_communication(
        self, communication_id: int, notifications: Sequence[Notification]
    ) -> list[Notification]:
        """Replace every notification of ``communication_id`` in one transaction."""

        models = []
        for notification in notifications:
            model = NotificationModel()
            self._apply_entity_to_model(model, notification)
            model.communication_id = communication_id
            models.append(model)
        try:
            self.session.query(NotificationModel).filter(
                NotificationModel.communication_id == communication_id
            ).delete(synchronize_session=False)
            self.session.add_all(models)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def list_for_user(
        self,
        user_id: int,
        *,
        reference: datetime,
        notification_type: NotificationType | None = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int | None = 10,
    ) -> tuple[Sequence[Notification], int]:
        query = self._active_query(user_id, reference)
        if notification_type is not None:
            query = query.filter(NotificationModel.type == notification_type.value)
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        total = query.count()
        query = self._ordered(query).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    def list_unread_for_user(
        self, user_id: int, *, reference: datetime, limit: int | None = 50
    ) -> Sequence[Notification]:
        query = self._ordered(
            self._active_query(user_id, reference).filter(
                NotificationModel.is_read.is_(False)
            )
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_unread_for_user(self, user_id: int, *, reference: datetime) -> int:
        return (
            self._active_query(user_id, reference)
            .filter(NotificationModel.is_read.is_(False))
            .count()
        )

    def count_for_user(self, user_id: int, *, reference: datetime) -> int:
        return self._active_query(user_id, reference).count()

    def count_by_type_for_user(
        self, user_id: int, *, reference: datetime
    ) -> dict[str, int]:
        query = (
            self._active_query(user_id, reference)
            .with_entities(NotificationModel.type, func.count(NotificationModel.id))
            .group_by(NotificationModel.type)
        )
        return {notification_type: int(count) for notification_type, count in query.all()}

    def count_unread_by_priority_for_user(
        self, user_id: int, *, reference: datetime
    ) -> dict[str, int]:
        query = (
            self._active_query(user_id, reference)
            .filter(NotificationModel.is_read.is_(False))
            .with_entities(NotificationModel.priority, func.count(NotificationModel.id))
            .group_by(NotificationModel.priority)
        )
        return {priority: int(count) for priority, count in query.all()}

    def mark_read(self, notification_id: int, *, read_at: datetime) -> Notification:
        """Flag one notification as read; repeated calls keep the first timestamp."""

        model = self._require_model(notification_id)
        if not model.is_read:
            model.is_read = True
            model.read_at = ensure_app_naive_datetime(read_at)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_displayed(
        self, notification_id: int, *, displayed_at: datetime
    ) -> Notification:
        model = self._require_model(notification_id)
        if not model.is_displayed:
            model.is_displayed = True
            model.displayed_at = ensure_app_naive_datetime(displayed_at)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_many_displayed(
        self, notification_ids: Iterable[int], *, displayed_at: datetime
    ) -> int:
        ids = list(notification_ids)
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.is_displayed.is_(False),
            )
            .update(
                {
                    NotificationModel.is_displayed: True,
                    NotificationModel.displayed_at: ensure_app_naive_datetime(
                        displayed_at
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: int) -> int:
        """Mark the given ids of ``user_id`` as read (websocket acknowledgements)."""

        ids = [int(notification_id) for notification_id in notification_ids]
        if not ids:
            return 0
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def mark_all_read_for_user(self, user_id: int, *, reference: datetime) -> int:
        """Mark every unread, non-expired notification of ``user_id`` as read."""

        updated = (
            self._active_query(user_id, reference)
            .filter(NotificationModel.is_read.is_(False))
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(reference),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def delete(self, notification_id: int) -> None:
        model = self._require_model(notification_id)
        self.session.delete(model)
        self.session.commit()

    def delete_expired(self, reference: datetime) -> int:
        """Physically remove every notification that expired before ``reference``."""

        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.expires_at.isnot(None))
            .filter(NotificationModel.expires_at < ensure_app_naive_datetime(reference))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _active_query(self, user_id: int, reference: datetime) -> Query:
        naive_reference = ensure_app_naive_datetime(reference)
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at >= naive_reference,
                )
            )
        )

    @staticmethod
    def _ordered(query: Query) -> Query:
        return query.order_by(
            _PRIORITY_RANK.desc(),
            NotificationModel.created_at.desc(),
            NotificationModel.id.desc(),
        )

    def _require_model(self, notification_id: int) -> NotificationModel:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        return model

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model.user_id = notification.user_id
        model.communication_id = notification.communication_id
        model.type = NotificationType(notification.type).value
        model.title = notification.title
        model.message = notification.message
        model.priority = CommunicationPriority(notification.priority).value
        model.payload = notification.payload or {}
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.is_displayed = notification.is_displayed
        model.displayed_at = ensure_app_naive_datetime(notification.displayed_at)
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            communication_id=model.communication_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            priority=CommunicationPriority(model.priority),
            payload=model.payload or {},
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            is_displayed=bool(model.is_displayed),
            displayed_at=ensure_app_timezone(model.displayed_at),
            expires_at=ensure_app_timezone(model.expires_at),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
