"""Use case for authenticating a user."""

from enum import Enum, auto

from sqlalchemy.orm import Session

from portal.domain.entities import User
from portal.infrastructure.repositories import UserRepository
from portal.infrastructure.security import verify_password


class AuthenticationStatus(Enum):
    """Possible outcomes when attempting to authenticate a user."""

    SUCCESS = auto()
    INVALID_CREDENTIALS = auto()
    INACTIVE = auto()


def authenticate_user(
    session: Session, email: str, password: str
) -> tuple[User | None, AuthenticationStatus]:
    """Return the authentication result along with the user when possible."""

    user = UserRepository(session).get_by_email(email)
    if user is None or not verify_password(password, user.password):
        return None, AuthenticationStatus.INVALID_CREDENTIALS
    if not user.is_active:
        return user, AuthenticationStatus.INACTIVE
    return user, AuthenticationStatus.SUCCESS
