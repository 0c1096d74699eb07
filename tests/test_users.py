"""Tests for account creation, authentication and capability mapping."""

from __future__ import annotations

import pytest

from portal.application.use_cases.users import (
    AuthenticationStatus,
    authenticate_user,
    create_user,
)
from portal.domain.entities import Actor, Capability, capability_for_role
from portal.domain.errors import ValidationError


@pytest.mark.parametrize(
    ("alias", "expected"),
    [
        ("admin", Capability.ELEVATED),
        ("SuperAdmin", Capability.ELEVATED),
        ("secretary", Capability.ELEVATED),
        ("treasurer", Capability.MEMBER),
        ("member", Capability.MEMBER),
        (None, Capability.MEMBER),
    ],
)
def test_capability_for_role(alias, expected) -> None:
    assert capability_for_role(alias) is expected


def test_create_user_normalizes_and_authenticates(session) -> None:
    user = create_user(
        session,
        name="  Greta Garden ",
        email="Greta@Example.com",
        password="Tulips2024",
        role_alias="Secretary",
    )

    assert user.id is not None
    assert user.name == "Greta Garden"
    assert user.email == "greta@example.com"
    assert user.role.alias == "secretary"
    assert Actor.from_user(user).is_elevated

    found, status = authenticate_user(session, "greta@example.com", "Tulips2024")
    assert status is AuthenticationStatus.SUCCESS
    assert found.id == user.id

    _, status = authenticate_user(session, "greta@example.com", "wrong")
    assert status is AuthenticationStatus.INVALID_CREDENTIALS


def test_create_user_rejects_unknown_roles_and_duplicates(session) -> None:
    create_user(session, name="Hal", email="hal@example.com", password="pw")

    with pytest.raises(ValidationError):
        create_user(session, name="Hal", email="hal@example.com", password="pw")
    with pytest.raises(ValidationError):
        create_user(session, name="Ivy", email="ivy@example.com", password="pw", role_alias="owner")


def test_inactive_accounts_cannot_log_in(session) -> None:
    create_user(
        session, name="Jon", email="jon@example.com", password="pw", is_active=False
    )

    user, status = authenticate_user(session, "jon@example.com", "pw")

    assert status is AuthenticationStatus.INACTIVE
    assert user is not None and not user.is_active
