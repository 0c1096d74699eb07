"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager, notification_manager
from .realtime import (
    Notifier,
    NullNotifier,
    RealtimeNotifier,
    realtime_notifier,
    serialize_notification,
)

__all__ = [
    "NotificationConnectionManager",
    "notification_manager",
    "Notifier",
    "NullNotifier",
    "RealtimeNotifier",
    "realtime_notifier",
    "serialize_notification",
]
