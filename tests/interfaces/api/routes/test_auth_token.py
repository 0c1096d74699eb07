"""Tests for the authentication token endpoint and bearer resolution."""

from __future__ import annotations

import pytest

from portal.infrastructure.repositories import UserRepository

TEST_PASSWORD = "Secret123!"
FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def _login(client, email: str, password: str):
    return client.post(
        "/auth/token",
        data={"username": email, "password": password},
        headers=FORM_HEADERS,
    )


def test_login_returns_bearer_token_with_role(client, users) -> None:
    response = _login(client, users.secretary.email, TEST_PASSWORD)

    assert response.status_code == 200
    payload = response.json()
    assert payload["token_type"] == "bearer"
    assert payload["role"] == "secretary"
    assert bool(payload["access_token"])

    inbox = client.get(
        "/communications/inbox",
        headers={"Authorization": f"Bearer {payload['access_token']}"},
    )
    assert inbox.status_code == 200


@pytest.mark.parametrize(
    ("email", "password"),
    [("bob.member@example.com", "wrong"), ("nobody@example.com", TEST_PASSWORD)],
)
def test_login_rejects_bad_credentials(client, users, email, password) -> None:
    response = _login(client, email, password)

    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"


def test_login_rejects_inactive_users(client, users) -> None:
    response = _login(client, users.inactive.email, TEST_PASSWORD)

    assert response.status_code == 403


def test_requests_without_token_are_unauthorized(client, users) -> None:
    assert client.get("/communications/inbox").status_code == 401
    assert client.get("/notifications/").status_code == 401


def test_deactivation_revokes_existing_tokens(client, users, session, auth_headers) -> None:
    headers = auth_headers(users.bob)
    assert client.get("/notifications/", headers=headers).status_code == 200

    UserRepository(session).set_active(users.bob.id, False)

    response = client.get("/notifications/", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"
