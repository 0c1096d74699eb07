"""FastAPI dependency utilities."""

from hashlib import sha256

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from portal.domain.entities import Actor, User
from portal.infrastructure.database import get_db
from portal.infrastructure.notifications import Notifier, realtime_notifier
from portal.infrastructure.repositories import UserRepository
from portal.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def password_signature(user: User) -> str:
    """Fingerprint embedded in tokens so a password change or deactivation revokes them."""

    return sha256(f"{user.password}:{int(user.is_active)}".encode()).hexdigest()


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    email = payload.get("sub")
    signature = payload.get("pwd_sig")
    if not isinstance(email, str) or not isinstance(signature, str):
        raise _credentials_exception()

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise _credentials_exception("User not found")
    if signature != password_signature(user):
        raise _credentials_exception()
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return current_user


def get_current_actor(current_user: User = Depends(get_current_active_user)) -> Actor:
    """Evaluate the caller's capability once for the whole request."""

    return Actor.from_user(current_user)


def require_elevated(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Ensure the caller holds an elevated role."""

    if not actor.is_elevated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return actor


def get_notifier() -> Notifier:
    """Return the realtime notifier handed to the fan-out."""

    return realtime_notifier
