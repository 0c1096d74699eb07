"""Persistence helpers for the Recipient Ledger."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from portal.domain.entities import Communication, CommunicationRecipient
from portal.infrastructure.models import (
    CommunicationModel,
    CommunicationRecipientModel,
)
from portal.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

from .communication_repository import CommunicationRepository


class CommunicationRecipientRepository:
    """Read and replace per-user recipient rows of a communication."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def replace_for_communication(
        self, communication_id: int, user_ids: Iterable[int]
    ) -> int:
        """Replace every row of ``communication_id`` with fresh unread rows.

        Deletion and insertion share one transaction, so a failure leaves the
        previous ledger untouched. Returns the number of inserted rows.
        """

        unique_ids = sorted({int(user_id) for user_id in user_ids})
        created_at = ensure_app_naive_datetime(now_in_app_timezone())
        try:
            self.session.query(CommunicationRecipientModel).filter(
                CommunicationRecipientModel.communication_id == communication_id
            ).delete(synchronize_session=False)
            self.session.add_all(
                [
                    CommunicationRecipientModel(
                        communication_id=communication_id,
                        user_id=user_id,
                        read_status=False,
                        read_time=None,
                        created_at=created_at,
                    )
                    for user_id in unique_ids
                ]
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return len(unique_ids)

    def list_for_communication(
        self, communication_id: int
    ) -> Sequence[CommunicationRecipient]:
        query = (
            self.session.query(CommunicationRecipientModel)
            .options(joinedload(CommunicationRecipientModel.user))
            .filter(CommunicationRecipientModel.communication_id == communication_id)
            .order_by(
                CommunicationRecipientModel.read_status.asc(),
                CommunicationRecipientModel.created_at.asc(),
                CommunicationRecipientModel.id.asc(),
            )
        )
        return [self._to_entity(model) for model in query.all()]

    def list_user_ids(self, communication_id: int) -> list[int]:
        query = self.session.query(CommunicationRecipientModel.user_id).filter(
            CommunicationRecipientModel.communication_id == communication_id
        )
        return sorted(user_id for (user_id,) in query.all())

    def get_for_user(
        self, communication_id: int, user_id: int
    ) -> CommunicationRecipient | None:
        model = self._get_model(communication_id, user_id)
        return self._to_entity(model) if model else None

    def mark_read(
        self, communication_id: int, user_id: int, *, read_time: datetime
    ) -> CommunicationRecipient | None:
        """Flag the row as read; the first read time is kept on repeated calls."""

        model = self._get_model(communication_id, user_id)
        if model is None:
            return None
        if not model.read_status:
            model.read_status = True
            model.read_time = ensure_app_naive_datetime(read_time)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def count_by_communication(
        self, communication_ids: Sequence[int]
    ) -> dict[int, tuple[int, int]]:
        """Return ``{communication_id: (recipient_count, read_count)}``."""

        if not communication_ids:
            return {}
        read_sum = func.sum(
            case((CommunicationRecipientModel.read_status.is_(True), 1), else_=0)
        )
        query = (
            self.session.query(
                CommunicationRecipientModel.communication_id,
                func.count(CommunicationRecipientModel.id),
                read_sum,
            )
            .filter(CommunicationRecipientModel.communication_id.in_(set(communication_ids)))
            .group_by(CommunicationRecipientModel.communication_id)
        )
        return {
            communication_id: (int(total or 0), int(read or 0))
            for communication_id, total, read in query.all()
        }

    def list_inbox(
        self, user_id: int, *, skip: int = 0, limit: int = 10
    ) -> tuple[list[tuple[Communication, CommunicationRecipient]], int]:
        """Return the user's received communications paired with their ledger row."""

        base = (
            self.session.query(CommunicationRecipientModel, CommunicationModel)
            .join(
                CommunicationModel,
                CommunicationRecipientModel.communication_id == CommunicationModel.id,
            )
            .filter(CommunicationRecipientModel.user_id == user_id)
        )
        total = base.count()
        rows = (
            base.order_by(
                CommunicationModel.sent_date.desc(),
                CommunicationModel.id.desc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )
        return (
            [
                (
                    CommunicationRepository._to_entity(communication),
                    self._to_entity(recipient, include_user=False),
                )
                for recipient, communication in rows
            ],
            total,
        )

    def count_unread_for_user(self, user_id: int) -> int:
        return (
            self.session.query(func.count(CommunicationRecipientModel.id))
            .filter(CommunicationRecipientModel.user_id == user_id)
            .filter(CommunicationRecipientModel.read_status.is_(False))
            .scalar()
        ) or 0

    def _get_model(
        self, communication_id: int, user_id: int
    ) -> CommunicationRecipientModel | None:
        return (
            self.session.query(CommunicationRecipientModel)
            .filter(CommunicationRecipientModel.communication_id == communication_id)
            .filter(CommunicationRecipientModel.user_id == user_id)
            .first()
        )

    @staticmethod
    def _to_entity(
        model: CommunicationRecipientModel, *, include_user: bool = True
    ) -> CommunicationRecipient:
        user = model.user if include_user else None
        return CommunicationRecipient(
            id=model.id,
            communication_id=model.communication_id,
            user_id=model.user_id,
            read_status=bool(model.read_status),
            read_time=ensure_app_timezone(model.read_time),
            created_at=ensure_app_timezone(model.created_at),
            user_name=user.name if user is not None else None,
            user_email=user.email if user is not None else None,
            user_role=user.role.alias if user is not None and user.role else None,
        )


__all__ = ["CommunicationRecipientRepository"]
