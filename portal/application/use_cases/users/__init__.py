"""Use cases for the portal accounts consumed by the engine."""

from .authenticate_user import AuthenticationStatus, authenticate_user
from .create_user import ROLE_NAMES, create_user

__all__ = ["AuthenticationStatus", "ROLE_NAMES", "authenticate_user", "create_user"]
