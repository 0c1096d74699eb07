"""Domain entities exposed by the application."""

from .access import ADMIN_TIER_ROLES, ELEVATED_ROLES, Actor, Capability, capability_for_role
from .communication import (
    RESTRICTED_MESSAGE_TYPES,
    Communication,
    CommunicationPriority,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from .communication_recipient import CommunicationRecipient
from .notification import NEW_NOTIFICATION_EVENT, Notification, NotificationType
from .role import Role
from .user import User

__all__ = [
    "ADMIN_TIER_ROLES",
    "ELEVATED_ROLES",
    "Actor",
    "Capability",
    "capability_for_role",
    "Communication",
    "CommunicationPriority",
    "CommunicationRecipient",
    "CommunicationStatus",
    "MessageType",
    "NEW_NOTIFICATION_EVENT",
    "Notification",
    "NotificationType",
    "RESTRICTED_MESSAGE_TYPES",
    "RecipientType",
    "Role",
    "User",
]
