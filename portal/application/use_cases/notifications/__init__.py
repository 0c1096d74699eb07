"""Use cases for the user-facing notification center."""

from .create_for_communication import create_notifications_for_communication
from .lifecycle import (
    delete_notification,
    mark_all_notifications_read,
    mark_notification_displayed,
    mark_notification_read,
)
from .list_notifications import (
    NotificationPage,
    NotificationStats,
    get_notification_stats,
    list_notifications,
    list_unread_notifications,
)
from .purge_expired import purge_expired_notifications

__all__ = [
    "NotificationPage",
    "NotificationStats",
    "create_notifications_for_communication",
    "delete_notification",
    "get_notification_stats",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_read",
    "mark_notification_displayed",
    "mark_notification_read",
    "purge_expired_notifications",
]
