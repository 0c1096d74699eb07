"""Error taxonomy shared by the use cases and the HTTP layer."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for every error raised deliberately by the engine."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError, ValueError):
    """Bad or missing input, e.g. an empty recipient list or a past date."""


class AuthorizationError(PortalError):
    """The actor lacks the role or ownership required by the operation."""


class InvalidState(PortalError):
    """The operation is not valid for the current lifecycle status."""


class NotFound(PortalError):
    """A communication, notification or recipient entry does not exist."""


class DependencyFailure(PortalError):
    """A best-effort side channel (realtime push or email) failed."""


__all__ = [
    "AuthorizationError",
    "DependencyFailure",
    "InvalidState",
    "NotFound",
    "PortalError",
    "ValidationError",
]
