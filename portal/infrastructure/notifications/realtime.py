"""Realtime notifier pushing fan-out events to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from anyio import from_thread
from fastapi.encoders import jsonable_encoder

from portal.domain.entities import Notification
from portal.domain.errors import DependencyFailure

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget channel used by the fan-out to reach connected users."""

    def notify(self, user_id: int, event_name: str, payload: Any) -> None:
        ...


class RealtimeNotifier:
    """Schedule ``{"type": event_name, "data": payload}`` messages for delivery.

    Delivery is never awaited by the caller: the push is started as a task on
    the event loop, also when ``notify`` runs in a sync route's worker thread.
    When no event loop is reachable (for instance from a CLI process) the push
    is reported as a :class:`DependencyFailure` for the caller to log.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[int]] = set()

    def notify(self, user_id: int, event_name: str, payload: Any) -> None:
        if not user_id:
            return

        message = {"type": event_name, "data": jsonable_encoder(payload)}
        try:
            self._schedule_send(user_id, message)
        except RuntimeError as exc:
            msg = f"Realtime push to user {user_id} could not be scheduled: {exc}"
            raise DependencyFailure(msg) from exc

    def _schedule_send(self, user_id: int, message: dict[str, Any]) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Sync routes run in an anyio worker thread; start the task on the loop.
            from_thread.run_sync(self._start_delivery, user_id, message)
        else:
            self._start_delivery(user_id, message)

    def _start_delivery(self, user_id: int, message: dict[str, Any]) -> None:
        task = asyncio.get_running_loop().create_task(
            self._manager.send_to_user(user_id, message)
        )
        self._pending.add(task)
        task.add_done_callback(self._finish_delivery)

    def _finish_delivery(self, task: asyncio.Task[int]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Realtime delivery failed: %s", exc)


class NullNotifier:
    """Notifier for processes without websocket clients, such as the sweeps CLI."""

    def notify(self, user_id: int, event_name: str, payload: Any) -> None:
        return None


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket representation of ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "communication_id": notification.communication_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "priority": notification.priority.value,
        "payload": jsonable_encoder(notification.payload or {}),
        "is_read": notification.is_read,
        "is_displayed": notification.is_displayed,
        "expires_at": notification.expires_at.isoformat()
        if notification.expires_at
        else None,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
    }


realtime_notifier = RealtimeNotifier(notification_manager)


__all__ = [
    "Notifier",
    "NullNotifier",
    "RealtimeNotifier",
    "realtime_notifier",
    "serialize_notification",
]
