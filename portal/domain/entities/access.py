"""Capability set used for every authorization decision.

Role aliases are compared in exactly one place: :func:`capability_for_role`.
Call sites only ask whether an :class:`Actor` is elevated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from .user import User

ELEVATED_ROLES: Final[frozenset[str]] = frozenset({"admin", "superadmin", "secretary"})
ADMIN_TIER_ROLES: Final[frozenset[str]] = frozenset(
    {"admin", "superadmin", "secretary", "treasurer"}
)


class Capability(str, Enum):
    """Coarse permission level of an authenticated user."""

    ELEVATED = "elevated"
    MEMBER = "member"


def capability_for_role(alias: str | None) -> Capability:
    """Map a role alias to its capability."""

    if alias and alias.lower() in ELEVATED_ROLES:
        return Capability.ELEVATED
    return Capability.MEMBER


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a use case, evaluated once per request."""

    user_id: int
    capability: Capability
    name: str = ""

    @property
    def is_elevated(self) -> bool:
        return self.capability is Capability.ELEVATED

    def owns(self, owner_id: int | None) -> bool:
        """Return ``True`` when ``owner_id`` identifies this actor."""

        return owner_id is not None and owner_id == self.user_id

    def can_manage(self, owner_id: int | None) -> bool:
        """Senders and elevated users may manage a communication."""

        return self.is_elevated or self.owns(owner_id)

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        if user.id is None:
            raise ValueError("Only persisted users can act on communications")
        return cls(
            user_id=user.id,
            capability=capability_for_role(user.role.alias),
            name=user.name,
        )


__all__ = [
    "ADMIN_TIER_ROLES",
    "ELEVATED_ROLES",
    "Actor",
    "Capability",
    "capability_for_role",
]
