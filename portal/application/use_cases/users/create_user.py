"""Use case for creating portal accounts."""

from sqlalchemy.orm import Session

from portal.domain.entities import User
from portal.domain.errors import ValidationError
from portal.infrastructure.repositories import RoleRepository, UserRepository
from portal.infrastructure.security import get_password_hash
from portal.utils import now_in_app_timezone

ROLE_NAMES = {
    "member": "Member",
    "admin": "Administrator",
    "superadmin": "Super administrator",
    "secretary": "Secretary",
    "treasurer": "Treasurer",
}


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    role_alias: str = "member",
    is_active: bool = True,
) -> User:
    """Create a user with a unique email, creating its role on first use."""

    alias = role_alias.strip().lower()
    if alias not in ROLE_NAMES:
        raise ValidationError(f"Unknown role '{role_alias}'")

    repository = UserRepository(session)
    if repository.get_by_email(email):
        raise ValidationError("Email is already registered")

    role = RoleRepository(session).get_or_create(alias, name=ROLE_NAMES[alias])
    user = User(
        id=None,
        role=role,
        name=name.strip(),
        email=email.strip().lower(),
        password=get_password_hash(password),
        is_active=is_active,
        created_at=now_in_app_timezone(),
    )
    return repository.create(user)
