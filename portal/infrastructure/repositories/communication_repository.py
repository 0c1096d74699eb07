"""Persistence helpers for communication records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from portal.domain.entities import (
    Communication,
    CommunicationPriority,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from portal.infrastructure.models import (
    CommunicationModel,
    CommunicationRecipientModel,
    NotificationModel,
)
from portal.utils import ensure_app_naive_datetime, ensure_app_timezone


class CommunicationRepository:
    """Provide CRUD and lifecycle transitions for :class:`Communication` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, communication_id: int) -> Communication | None:
        model = self._get_model(communication_id)
        return self._to_entity(model) if model else None

    def create(self, communication: Communication) -> Communication:
        model = CommunicationModel(
            **self._editable_fields(communication),
            status=CommunicationStatus.DRAFT.value,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, communication: Communication) -> Communication | None:
        """Write the editable fields of a draft.

        Lifecycle columns are left to :meth:`transition_status`. The update only
        matches while the stored row is still a draft; ``None`` is returned when
        it is not (sent, scheduled or deleted in the meantime).
        """

        if communication.id is None:
            raise ValueError("Communication id is required for updates")
        updated = (
            self.session.query(CommunicationModel)
            .filter(
                CommunicationModel.id == communication.id,
                CommunicationModel.status == CommunicationStatus.DRAFT.value,
            )
            .update(self._editable_fields(communication), synchronize_session=False)
        )
        self.session.commit()
        self.session.expire_all()
        if updated != 1:
            return None
        return self.get(communication.id)

    def transition_status(
        self,
        communication_id: int,
        *,
        expected: CommunicationStatus,
        target: CommunicationStatus,
        sent_date: datetime | None = None,
        scheduled_for: datetime | None = None,
    ) -> bool:
        """Move the record from ``expected`` to ``target`` status.

        The update only matches while the stored status still equals
        ``expected``, so of two concurrent transitions exactly one succeeds.
        Returns ``False`` when the row was not in the expected status.
        """

        values: dict[object, object] = {CommunicationModel.status: target.value}
        if sent_date is not None:
            values[CommunicationModel.sent_date] = ensure_app_naive_datetime(sent_date)
        if scheduled_for is not None:
            values[CommunicationModel.scheduled_for] = ensure_app_naive_datetime(
                scheduled_for
            )
        updated = (
            self.session.query(CommunicationModel)
            .filter(
                CommunicationModel.id == communication_id,
                CommunicationModel.status == expected.value,
            )
            .update(values, synchronize_session=False)
        )
        self.session.commit()
        self.session.expire_all()
        return updated == 1

    def delete(self, communication_id: int) -> None:
        """Delete the record after both ledgers, in a single transaction."""

        try:
            self.session.query(CommunicationRecipientModel).filter(
                CommunicationRecipientModel.communication_id == communication_id
            ).delete(synchronize_session=False)
            self.session.query(NotificationModel).filter(
                NotificationModel.communication_id == communication_id
            ).delete(synchronize_session=False)
            self.session.query(CommunicationModel).filter(
                CommunicationModel.id == communication_id
            ).delete(synchronize_session=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def list_filtered(
        self,
        *,
        message_type: MessageType | None = None,
        status: CommunicationStatus | None = None,
        recipient_type: RecipientType | None = None,
        sender_id: int | None = None,
        sent_from: datetime | None = None,
        sent_to: datetime | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[Sequence[Communication], int]:
        """Return a page of communications matching the filters and the total count."""

        query = self.session.query(CommunicationModel)
        if message_type is not None:
            query = query.filter(CommunicationModel.message_type == message_type.value)
        if status is not None:
            query = query.filter(CommunicationModel.status == status.value)
        if recipient_type is not None:
            query = query.filter(
                CommunicationModel.recipient_type == recipient_type.value
            )
        if sender_id is not None:
            query = query.filter(CommunicationModel.sender_id == sender_id)
        if sent_from is not None:
            query = query.filter(
                CommunicationModel.sent_date >= ensure_app_naive_datetime(sent_from)
            )
        if sent_to is not None:
            query = query.filter(
                CommunicationModel.sent_date <= ensure_app_naive_datetime(sent_to)
            )
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    CommunicationModel.subject.ilike(pattern),
                    CommunicationModel.content.ilike(pattern),
                )
            )

        total = query.count()
        query = self._ordered(query).options(joinedload(CommunicationModel.sender))
        models = (
            query.offset(skip)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def list_due_scheduled(self, reference: datetime) -> Sequence[Communication]:
        """Return scheduled communications whose ``scheduled_for`` has passed."""

        query = (
            self.session.query(CommunicationModel)
            .filter(CommunicationModel.status == CommunicationStatus.SCHEDULED.value)
            .filter(
                CommunicationModel.scheduled_for
                <= ensure_app_naive_datetime(reference)
            )
            .order_by(CommunicationModel.scheduled_for.asc(), CommunicationModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_recent_sent(self, limit: int = 5) -> Sequence[Communication]:
        query = (
            self.session.query(CommunicationModel)
            .options(joinedload(CommunicationModel.sender))
            .filter(CommunicationModel.sent_date.isnot(None))
            .order_by(CommunicationModel.sent_date.desc(), CommunicationModel.id.desc())
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def _get_model(self, communication_id: int) -> CommunicationModel | None:
        return (
            self.session.query(CommunicationModel)
            .options(joinedload(CommunicationModel.sender))
            .filter(CommunicationModel.id == communication_id)
            .first()
        )

    @staticmethod
    def _ordered(query: Query) -> Query:
        # Drafts have no sent date; newest activity first either way.
        return query.order_by(
            CommunicationModel.sent_date.is_(None),
            CommunicationModel.sent_date.desc(),
            CommunicationModel.created_at.desc(),
            CommunicationModel.id.desc(),
        )

    @staticmethod
    def _editable_fields(communication: Communication) -> dict[str, object]:
        return {
            "subject": communication.subject,
            "content": communication.content,
            "sender_id": communication.sender_id,
            "recipient_type": RecipientType(communication.recipient_type).value,
            "recipient_ids": list(communication.recipient_ids or []),
            "priority": CommunicationPriority(communication.priority).value,
            "message_type": MessageType(communication.message_type).value,
            "attachment_url": communication.attachment_url,
        }

    @staticmethod
    def _to_entity(model: CommunicationModel) -> Communication:
        return Communication(
            id=model.id,
            subject=model.subject,
            content=model.content,
            sender_id=model.sender_id,
            recipient_type=RecipientType(model.recipient_type),
            message_type=MessageType(model.message_type),
            status=CommunicationStatus(model.status),
            priority=CommunicationPriority(model.priority),
            recipient_ids=[int(user_id) for user_id in (model.recipient_ids or [])],
            sent_date=ensure_app_timezone(model.sent_date),
            scheduled_for=ensure_app_timezone(model.scheduled_for),
            attachment_url=model.attachment_url,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            sender_name=model.sender.name if model.sender is not None else None,
        )


__all__ = ["CommunicationRepository"]
