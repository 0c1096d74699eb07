"""Shared fixtures: a throwaway SQLite database, seeded users and a fake notifier."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="portal-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["COMMUNICATION_EMAIL_ENABLED"] = "false"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from portal.domain.entities import Actor, User  # noqa: E402
from portal.domain.errors import DependencyFailure  # noqa: E402
from portal.infrastructure import database  # noqa: E402
from portal.infrastructure.repositories import (  # noqa: E402
    RoleRepository,
    UserRepository,
)
from portal.infrastructure.security import (  # noqa: E402
    create_access_token,
    get_password_hash,
)

TEST_PASSWORD = "Secret123!"


@dataclass
class RecordingNotifier:
    """Notifier that keeps every call instead of pushing it."""

    calls: list[tuple[int, str, Any]] = field(default_factory=list)

    def notify(self, user_id: int, event_name: str, payload: Any) -> None:
        self.calls.append((user_id, event_name, payload))

    @property
    def user_ids(self) -> set[int]:
        return {user_id for user_id, _, _ in self.calls}


class FailingNotifier:
    """Notifier whose every push fails."""

    def __init__(self) -> None:
        self.attempts = 0

    def notify(self, user_id: int, event_name: str, payload: Any) -> None:
        self.attempts += 1
        raise DependencyFailure(f"socket for user {user_id} is gone")


@pytest.fixture(autouse=True)
def reset_database():
    """Give every test empty tables."""

    from portal.infrastructure import models  # noqa: F401

    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture()
def session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session")
def password_hash() -> str:
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture()
def make_user(session, password_hash):
    """Factory creating an account with the given role alias."""

    def _make_user(name: str, role_alias: str = "member", *, is_active: bool = True) -> User:
        role = RoleRepository(session).get_or_create(role_alias)
        email = f"{name.lower().replace(' ', '.')}@example.com"
        return UserRepository(session).create(
            User(
                id=None,
                role=role,
                name=name,
                email=email,
                password=password_hash,
                is_active=is_active,
            )
        )

    return _make_user


@pytest.fixture()
def users(make_user) -> SimpleNamespace:
    """A small association: elevated staff, a treasurer and plain members."""

    return SimpleNamespace(
        admin=make_user("Ada Admin", "admin"),
        secretary=make_user("Sam Secretary", "secretary"),
        treasurer=make_user("Tess Treasurer", "treasurer"),
        alice=make_user("Alice Member"),
        bob=make_user("Bob Member"),
        carol=make_user("Carol Member"),
        inactive=make_user("Ian Inactive", is_active=False),
    )


@pytest.fixture()
def actors(users) -> SimpleNamespace:
    return SimpleNamespace(
        **{key: Actor.from_user(user) for key, user in vars(users).items()}
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture()
def client(notifier):
    """Return a test client whose realtime pushes are recorded by ``notifier``."""

    from fastapi.testclient import TestClient

    from main import create_app
    from portal.interfaces.api.dependencies import get_notifier

    app = create_app()
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers():
    """Build bearer headers for a user without going through the login form."""

    from portal.interfaces.api.dependencies import password_signature

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(
            {"sub": user.email, "role": user.role.alias, "pwd_sig": password_signature(user)}
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture()
def add_notification(session):
    """Insert a notification row for ``user``; timestamps are relative to now."""

    from portal.domain.entities import CommunicationPriority, NotificationType
    from portal.infrastructure.models import NotificationModel
    from portal.utils import ensure_app_naive_datetime, now_in_app_timezone

    def _add(
        user,
        title,
        *,
        type=NotificationType.SYSTEM,
        priority=CommunicationPriority.NORMAL,
        age_minutes=0,
        expires_at=None,
    ):
        model = NotificationModel(
            user_id=user.id,
            type=type.value,
            title=title,
            message=f"{title} message",
            priority=priority.value,
            payload={},
            created_at=ensure_app_naive_datetime(
                now_in_app_timezone() - timedelta(minutes=age_minutes)
            ),
            expires_at=ensure_app_naive_datetime(expires_at),
        )
        session.add(model)
        session.commit()
        session.refresh(model)
        return model

    return _add
