"""Fan-out: materialize the per-user ledgers of a communication.

The orchestrator is the only writer of the Recipient Ledger and the
Notification Ledger. Each run re-resolves the audience and replaces both
ledgers for the communication id (recipients first, then notifications), so
running it again never duplicates rows and drops users who no longer belong
to the audience.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy.orm import Session

from portal.config import Settings, get_settings
from portal.domain.entities import (
    NEW_NOTIFICATION_EVENT,
    Communication,
    CommunicationStatus,
    MessageType,
    Notification,
    NotificationType,
)
from portal.domain.errors import InvalidState, NotFound, ValidationError
from portal.infrastructure.notifications import Notifier, serialize_notification
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
    NotificationRepository,
)
from portal.utils import ensure_app_timezone, now_in_app_timezone

from .audience import resolve_audience

logger = logging.getLogger(__name__)

DEFAULT_SENDER_NAME = "System"


class FanOutMode(str, Enum):
    SEND = "send"
    SCHEDULE = "schedule"
    DISPATCH = "dispatch"


_EXPECTED_STATUS = {
    FanOutMode.SEND: CommunicationStatus.DRAFT,
    FanOutMode.SCHEDULE: CommunicationStatus.DRAFT,
    FanOutMode.DISPATCH: CommunicationStatus.SCHEDULED,
}
_TARGET_STATUS = {
    FanOutMode.SEND: CommunicationStatus.SENT,
    FanOutMode.SCHEDULE: CommunicationStatus.SCHEDULED,
    FanOutMode.DISPATCH: CommunicationStatus.SENT,
}


@dataclass(frozen=True)
class FanOutResult:
    communication: Communication
    recipient_count: int
    notification_count: int


class FanOutOrchestrator:
    """Write both ledgers of a communication and push realtime events."""

    def __init__(
        self,
        session: Session,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._notifier = notifier
        self._clock = clock
        self._settings = settings or get_settings()
        self._communications = CommunicationRepository(session)
        self._recipients = CommunicationRecipientRepository(session)
        self._notifications = NotificationRepository(session)

    def fan_out(
        self,
        communication_id: int,
        *,
        mode: FanOutMode,
        scheduled_for: datetime | None = None,
    ) -> FanOutResult:
        """Run the fan-out of ``communication_id`` in the given ``mode``.

        ``send`` and ``dispatch`` move the communication to ``sent`` and push a
        realtime event per recipient. ``schedule`` pre-computes the ledgers,
        records ``scheduled_for`` and stays silent until dispatch.
        """

        communication = self._load(communication_id)
        expected = _EXPECTED_STATUS[mode]
        if communication.status is not expected:
            raise InvalidState(
                f"Cannot {mode.value} a communication in status "
                f"'{communication.status.value}'"
            )

        now = self._clock()
        if mode is FanOutMode.SCHEDULE:
            scheduled_for = self._validate_schedule(scheduled_for, now)
            effective_date = scheduled_for
        else:
            scheduled_for = None
            effective_date = now

        user_ids = resolve_audience(
            self._session, communication.recipient_type, communication.recipient_ids
        )
        recipient_count = self._recipients.replace_for_communication(
            communication_id, user_ids
        )
        notifications = self._notifications.replace_for_communication(
            communication_id,
            self._build_notifications(communication, user_ids, effective_date, now),
        )

        moved = self._communications.transition_status(
            communication_id,
            expected=expected,
            target=_TARGET_STATUS[mode],
            sent_date=None if mode is FanOutMode.SCHEDULE else now,
            scheduled_for=scheduled_for,
        )
        if not moved:
            raise InvalidState(
                "Communication status changed while it was being distributed"
            )

        logger.info(
            "Fan-out %s of communication %s: %s recipients, %s notifications",
            mode.value,
            communication_id,
            recipient_count,
            len(notifications),
        )
        if mode is not FanOutMode.SCHEDULE:
            self._push(notifications)

        return FanOutResult(
            communication=self._load(communication_id),
            recipient_count=recipient_count,
            notification_count=len(notifications),
        )

    def refresh_notifications(self, communication_id: int) -> FanOutResult:
        """Rebuild the Notification Ledger of a sent communication.

        The current Recipient Ledger is the audience; it is not re-resolved.
        Used to repair a fan-out that failed between the two ledgers.
        """

        communication = self._load(communication_id)
        if communication.status is not CommunicationStatus.SENT:
            raise InvalidState("Notifications can only be created for sent communications")
        user_ids = self._recipients.list_user_ids(communication_id)
        if not user_ids:
            raise ValidationError("No recipients found for this communication")

        now = self._clock()
        notifications = self._notifications.replace_for_communication(
            communication_id,
            self._build_notifications(
                communication, user_ids, communication.sent_date or now, now
            ),
        )
        logger.info(
            "Refreshed %s notifications of communication %s",
            len(notifications),
            communication_id,
        )
        self._push(notifications)
        return FanOutResult(
            communication=communication,
            recipient_count=len(user_ids),
            notification_count=len(notifications),
        )

    def _load(self, communication_id: int) -> Communication:
        communication = self._communications.get(communication_id)
        if communication is None:
            raise NotFound("Communication not found")
        return communication

    @staticmethod
    def _validate_schedule(scheduled_for: datetime | None, now: datetime) -> datetime:
        if scheduled_for is None:
            raise ValidationError("Scheduled date is required")
        localized = ensure_app_timezone(scheduled_for)
        if localized <= now:
            raise ValidationError("Scheduled date must be in the future")
        return localized

    def _build_notifications(
        self,
        communication: Communication,
        user_ids: Iterable[int],
        effective_date: datetime,
        now: datetime,
    ) -> list[Notification]:
        notification_type = (
            NotificationType.ANNOUNCEMENT
            if communication.message_type is MessageType.ANNOUNCEMENT
            else NotificationType.COMMUNICATION
        )
        message = communication.content[: self._settings.notification_message_max_length]
        expires_at = now + timedelta(days=self._settings.notification_ttl_days)
        payload = {
            "sender_name": communication.sender_name or DEFAULT_SENDER_NAME,
            "message_type": communication.message_type.value,
            "sent_date": effective_date.isoformat(),
            "communication_id": communication.id,
        }
        return [
            Notification(
                id=None,
                user_id=user_id,
                communication_id=communication.id,
                type=notification_type,
                title=communication.subject,
                message=message,
                priority=communication.priority,
                payload=dict(payload),
                expires_at=expires_at,
                created_at=now,
            )
            for user_id in sorted(set(user_ids))
        ]

    def _push(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            try:
                self._notifier.notify(
                    notification.user_id,
                    NEW_NOTIFICATION_EVENT,
                    serialize_notification(notification),
                )
            except Exception as exc:
                logger.warning(
                    "Realtime notification to user %s failed: %s",
                    notification.user_id,
                    exc,
                )


__all__ = ["DEFAULT_SENDER_NAME", "FanOutMode", "FanOutOrchestrator", "FanOutResult"]
