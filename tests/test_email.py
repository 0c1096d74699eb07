"""Unit tests for the SendGrid email helpers and the email mirror of sends."""

from __future__ import annotations

import importlib
import json
import types

import pytest

from portal.application.use_cases.communications import create_communication
from portal.domain.entities import (
    Communication,
    MessageType,
    RecipientType,
    Role,
    User,
)
from portal.infrastructure import email as email_module

send_module = importlib.import_module(
    "portal.application.use_cases.communications.send_communication"
)


class DummySettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"
    communication_email_enabled = True


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` that accepts every message."""

    sent: list = []

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        RecordingClient.sent.append(message)
        return types.SimpleNamespace(status_code=202, body=None)


@pytest.fixture(autouse=True)
def clear_recorded_messages():
    RecordingClient.sent = []
    yield


def _communication(**overrides) -> Communication:
    values = {
        "id": 1,
        "subject": "Board <update>",
        "content": "First line\n\nSecond & last line",
        "sender_id": 1,
        "recipient_type": RecipientType.ALL,
        "message_type": MessageType.NEWSLETTER,
        "sender_name": "Ada Admin",
    }
    values.update(overrides)
    return Communication(**values)


def _user(email: str) -> User:
    return User(
        id=None,
        role=Role(id=1, name="Member", alias="member"),
        name="Someone",
        email=email,
        password="hashed",
        is_active=True,
    )


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    class MissingSettings:
        sendgrid_api_key = None
        sendgrid_sender = None

    monkeypatch.setattr(email_module, "get_settings", lambda: MissingSettings())

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False


def test_send_email_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """A successful SendGrid response should return ``True``."""

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is True
    assert len(RecordingClient.sent) == 1


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {"errors": [{"message": "The provided authorization grant is invalid."}]}
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("WARNING"):
        result = email_module.send_email("Subject", "<p>Body</p>", "user@example.com")

    assert result is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


def test_send_email_rejects_non_success_status(monkeypatch: pytest.MonkeyPatch, caplog):
    class RejectingClient(RecordingClient):
        def send(self, message):
            return types.SimpleNamespace(status_code=400, body=b"bad request")

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RejectingClient)

    with caplog.at_level("WARNING"):
        assert email_module.send_email("Subject", "<p>x</p>", "user@example.com") is False

    assert "status 400" in caplog.text
    assert "bad request" in caplog.text


def test_render_communication_email_escapes_markup() -> None:
    rendered = email_module.render_communication_email(
        _communication(attachment_url="https://files.example.com/a?b=1&c=2")
    )

    assert "<h2>Board &lt;update&gt;</h2>" in rendered
    assert "<p>First line</p><p>Second &amp; last line</p>" in rendered
    assert "<em>Ada Admin</em>" in rendered
    assert 'href="https://files.example.com/a?b=1&amp;c=2"' in rendered


def test_send_communication_email_counts_accepted_messages(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)

    delivered = email_module.send_communication_email(
        _communication(), [_user("bob@example.com"), _user(""), _user("carol@example.com")]
    )

    assert delivered == 2
    assert len(RecordingClient.sent) == 2


def test_sending_mirrors_by_email_when_enabled(
    monkeypatch: pytest.MonkeyPatch, session, users, actors, notifier
) -> None:
    monkeypatch.setattr(send_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    draft = create_communication(
        session,
        actors.alice,
        subject="Garden day",
        content="Bring gloves.",
        message_type=MessageType.DIRECT,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id, users.carol.id],
    )

    send_module.send_communication(session, notifier, actors.alice, draft.id)

    assert len(RecordingClient.sent) == 2


def test_email_failures_never_fail_the_send(
    monkeypatch: pytest.MonkeyPatch, session, users, actors, notifier, caplog
) -> None:
    def explode(communication, recipients):
        raise RuntimeError("smtp relay down")

    monkeypatch.setattr(send_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(send_module, "send_communication_email", explode)

    draft = create_communication(
        session,
        actors.alice,
        subject="Garden day",
        content="Bring gloves.",
        message_type=MessageType.DIRECT,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )

    with caplog.at_level("WARNING"):
        result = send_module.send_communication(session, notifier, actors.alice, draft.id)

    assert result.recipient_count == 1
    assert "smtp relay down" in caplog.text
