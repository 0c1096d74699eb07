"""Use cases for authoring, distributing and reading communications."""

from .audience import resolve_audience
from .create_communication import create_communication
from .delete_communication import delete_communication
from .dispatch_communications import (
    dispatch_due_communications,
    dispatch_scheduled_communication,
)
from .fan_out import FanOutMode, FanOutOrchestrator, FanOutResult
from .get_communication import get_communication
from .list_communications import (
    CommunicationListing,
    Inbox,
    list_admin_communications,
    list_inbox,
    list_sent_communications,
)
from .recipients import list_communication_recipients, mark_communication_read
from .schedule_communication import schedule_communication
from .send_communication import send_communication
from .update_communication import update_communication

__all__ = [
    "CommunicationListing",
    "FanOutMode",
    "FanOutOrchestrator",
    "FanOutResult",
    "Inbox",
    "create_communication",
    "delete_communication",
    "dispatch_due_communications",
    "dispatch_scheduled_communication",
    "get_communication",
    "list_admin_communications",
    "list_communication_recipients",
    "list_inbox",
    "list_sent_communications",
    "mark_communication_read",
    "resolve_audience",
    "schedule_communication",
    "send_communication",
    "update_communication",
]
