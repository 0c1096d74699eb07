"""SendGrid side channel used to mirror sent communications by email."""

from __future__ import annotations

import html
import json
import logging
from collections.abc import Iterable
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from portal.config import get_settings
from portal.domain.entities import Communication, User

logger = logging.getLogger(__name__)


def _describe_sendgrid_body(body: Any) -> str | None:
    """Turn a SendGrid error payload into a short readable message."""

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body
    if isinstance(body, dict):
        messages = [
            str(item["message"])
            for item in body.get("errors") or []
            if isinstance(item, dict) and item.get("message")
        ]
        if messages:
            return "; ".join(messages)
        return json.dumps(body, default=str)
    if isinstance(body, list):
        return "; ".join(str(item) for item in body)
    return None


def _log_sendgrid_failure(source: Any, recipient: str) -> None:
    status_code = getattr(source, "status_code", None)
    details = _describe_sendgrid_body(getattr(source, "body", None))
    logger.warning(
        "SendGrid delivery to %s failed (status %s): %s",
        recipient,
        status_code if status_code is not None else "n/a",
        details or source,
    )


def send_email(subject: str, html_content: str, recipient: str) -> bool:
    """Send one email using the configured SendGrid credentials.

    Returns ``False`` instead of raising when the credentials are missing or
    SendGrid rejects the request.
    """

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        response = SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        _log_sendgrid_failure(exc, recipient)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(response, recipient)
        return False
    return True


def render_communication_email(communication: Communication) -> str:
    """Return the HTML body mirrored to recipients of ``communication``."""

    paragraphs = "".join(
        f"<p>{html.escape(line)}</p>"
        for line in communication.content.splitlines()
        if line.strip()
    )
    parts = [f"<h2>{html.escape(communication.subject)}</h2>", paragraphs]
    if communication.sender_name:
        parts.append(f"<p><em>{html.escape(communication.sender_name)}</em></p>")
    if communication.attachment_url:
        url = html.escape(communication.attachment_url, quote=True)
        parts.append(f'<p><a href="{url}">Attachment</a></p>')
    return "".join(parts)


def send_communication_email(
    communication: Communication, recipients: Iterable[User]
) -> int:
    """Mail ``communication`` to every recipient with an address.

    Each failure is logged and skipped. Returns the number of accepted emails.
    """

    html_content = render_communication_email(communication)
    delivered = 0
    for user in recipients:
        if not user.email:
            continue
        if send_email(communication.subject, html_content, user.email):
            delivered += 1
    return delivered


__all__ = ["render_communication_email", "send_communication_email", "send_email"]
