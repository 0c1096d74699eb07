"""Domain entity representing a portal user."""

from dataclasses import dataclass
from datetime import datetime

from .role import Role


@dataclass
class User:
    """Attributes of a portal account needed by the communication engine."""

    id: int | None
    role: Role
    name: str
    email: str
    password: str
    is_active: bool
    created_at: datetime | None = None


__all__ = ["User"]
