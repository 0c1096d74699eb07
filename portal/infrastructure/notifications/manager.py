"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Keep the open notification-center sockets of every connected user."""

    def __init__(self) -> None:
        self._connections: DefaultDict[int, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        """Accept ``websocket`` and register it under ``user_id``."""

        await websocket.accept()
        self._connections[user_id].add(websocket)
        logger.debug(
            "User %s connected to notifications (%s open sockets)",
            user_id,
            len(self._connections[user_id]),
        )

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send ``message`` to every socket of ``user_id``.

        Sockets that fail are dropped from the pool. Returns the number of
        sockets the message reached.
        """

        delivered = 0
        for connection in list(self._connections.get(user_id, set())):
            try:
                await connection.send_json(message)
            except Exception:  # pragma: no cover - closed sockets depend on the client
                logger.debug("Dropping stale notification socket of user %s", user_id)
                self.disconnect(user_id, connection)
            else:
                delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
