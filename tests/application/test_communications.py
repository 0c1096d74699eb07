"""Tests for authoring, editing, reading and deleting communications."""

from __future__ import annotations

import importlib
from dataclasses import replace
from datetime import timedelta

import pytest

from portal.application.use_cases.communications import (
    create_communication,
    delete_communication,
    get_communication,
    list_admin_communications,
    list_communication_recipients,
    list_inbox,
    list_sent_communications,
    mark_communication_read,
    schedule_communication,
    send_communication,
    update_communication,
)
from portal.domain.entities import (
    CommunicationPriority,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from portal.domain.errors import (
    AuthorizationError,
    InvalidState,
    NotFound,
    ValidationError,
)
from portal.infrastructure import database
from portal.infrastructure.models import CommunicationRecipientModel, NotificationModel
from portal.infrastructure.repositories import (
    CommunicationRecipientRepository,
    CommunicationRepository,
)
from portal.utils import now_in_app_timezone

update_module = importlib.import_module(
    "portal.application.use_cases.communications.update_communication"
)


def _create(session, actor, **overrides):
    values = {
        "subject": "Summer party",
        "content": "Join us on the terrace.",
        "message_type": MessageType.DIRECT,
        "recipient_type": RecipientType.ALL,
    }
    values.update(overrides)
    return create_communication(session, actor, **values)


def test_create_stores_a_trimmed_draft(session, users, actors):
    communication = _create(
        session,
        actors.alice,
        subject="  Summer party  ",
        priority=CommunicationPriority.HIGH,
        attachment_url="   ",
    )

    assert communication.id is not None
    assert communication.status is CommunicationStatus.DRAFT
    assert communication.subject == "Summer party"
    assert communication.sender_id == users.alice.id
    assert communication.sender_name == users.alice.name
    assert communication.priority is CommunicationPriority.HIGH
    assert communication.attachment_url is None
    assert communication.sent_date is None


@pytest.mark.parametrize("message_type", [MessageType.ANNOUNCEMENT, MessageType.NEWSLETTER])
def test_members_cannot_author_announcements_or_newsletters(
    session, users, actors, message_type
):
    with pytest.raises(AuthorizationError):
        _create(session, actors.alice, message_type=message_type)

    communication = _create(session, actors.secretary, message_type=message_type)
    assert communication.message_type is message_type


def test_treasurer_is_not_elevated(session, users, actors):
    with pytest.raises(AuthorizationError):
        _create(session, actors.treasurer, message_type=MessageType.ANNOUNCEMENT)


@pytest.mark.parametrize(
    ("subject", "content"), [("", "Body"), ("   ", "Body"), ("Subject", "  "), ("x" * 201, "Body")]
)
def test_create_requires_subject_and_content(session, users, actors, subject, content):
    with pytest.raises(ValidationError):
        _create(session, actors.alice, subject=subject, content=content)


def test_specific_recipients_are_validated(session, users, actors):
    with pytest.raises(ValidationError):
        _create(session, actors.alice, recipient_type=RecipientType.SPECIFIC, recipient_ids=[])
    with pytest.raises(ValidationError):
        _create(
            session,
            actors.alice,
            recipient_type=RecipientType.SPECIFIC,
            recipient_ids=[users.bob.id, users.inactive.id],
        )

    communication = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.carol.id, users.bob.id, users.bob.id],
    )
    assert communication.recipient_ids == sorted([users.bob.id, users.carol.id])


def test_non_specific_policies_discard_explicit_ids(session, users, actors):
    communication = _create(
        session,
        actors.admin,
        recipient_type=RecipientType.ADMIN,
        recipient_ids=[users.bob.id],
    )

    assert communication.recipient_ids == []


def test_update_changes_draft_fields(session, users, actors):
    draft = _create(session, actors.alice)

    updated = update_communication(
        session,
        actors.alice,
        draft.id,
        subject="Summer party moved",
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )

    assert updated.subject == "Summer party moved"
    assert updated.content == draft.content
    assert updated.recipient_type is RecipientType.SPECIFIC
    assert updated.recipient_ids == [users.bob.id]


def test_update_checks_ownership_kind_and_status(session, users, actors, notifier):
    draft = _create(session, actors.alice, recipient_type=RecipientType.SPECIFIC, recipient_ids=[users.bob.id])

    with pytest.raises(AuthorizationError):
        update_communication(session, actors.bob, draft.id, subject="Hijacked")
    with pytest.raises(AuthorizationError):
        update_communication(
            session, actors.alice, draft.id, message_type=MessageType.NEWSLETTER
        )

    send_communication(session, notifier, actors.alice, draft.id)
    with pytest.raises(InvalidState):
        update_communication(session, actors.alice, draft.id, subject="Too late")
    with pytest.raises(InvalidState):
        update_communication(session, actors.admin, draft.id, subject="Too late")


def test_update_of_scheduled_communication_is_rejected(session, users, actors, notifier):
    draft = _create(session, actors.alice)
    schedule_communication(
        session, notifier, actors.alice, draft.id, now_in_app_timezone() + timedelta(days=1)
    )

    with pytest.raises(InvalidState):
        update_communication(session, actors.alice, draft.id, content="Changed")


def test_stale_edit_does_not_revert_a_concurrent_send(session, users, actors, notifier):
    draft = _create(
        session, actors.alice, recipient_type=RecipientType.SPECIFIC, recipient_ids=[users.bob.id]
    )
    stale = CommunicationRepository(session).get(draft.id)

    other = database.SessionLocal()
    try:
        send_communication(other, notifier, actors.alice, draft.id)
    finally:
        other.close()

    assert CommunicationRepository(session).update(replace(stale, subject="Edited")) is None
    stored = CommunicationRepository(session).get(draft.id)
    assert stored.status is CommunicationStatus.SENT
    assert stored.sent_date is not None
    assert stored.subject == "Summer party"


def test_update_racing_a_send_raises_invalid_state(
    monkeypatch, session, users, actors, notifier
):
    draft = _create(session, actors.alice)
    stale = CommunicationRepository(session).get(draft.id)
    send_communication(session, notifier, actors.alice, draft.id)
    monkeypatch.setattr(update_module, "get_managed_communication", lambda *args: stale)

    with pytest.raises(InvalidState):
        update_module.update_communication(session, actors.alice, draft.id, subject="Edited")

    assert CommunicationRepository(session).get(draft.id).status is CommunicationStatus.SENT


def test_update_missing_communication(session, users, actors):
    with pytest.raises(NotFound):
        update_communication(session, actors.admin, 12345, subject="Nothing")


def test_delete_cascades_to_both_ledgers(session, users, actors, notifier):
    draft = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id, users.carol.id],
    )
    send_communication(session, notifier, actors.alice, draft.id)

    with pytest.raises(AuthorizationError):
        delete_communication(session, actors.bob, draft.id)

    delete_communication(session, actors.alice, draft.id)

    assert session.query(CommunicationRecipientModel).count() == 0
    assert session.query(NotificationModel).count() == 0
    with pytest.raises(NotFound):
        list_communication_recipients(session, actors.alice, draft.id)
    with pytest.raises(NotFound):
        get_communication(session, actors.admin, draft.id)


def test_elevated_users_can_delete_any_communication(session, users, actors):
    draft = _create(session, actors.alice)

    delete_communication(session, actors.admin, draft.id)

    with pytest.raises(NotFound):
        get_communication(session, actors.alice, draft.id)


def test_recipient_viewing_marks_the_ledger_row_read(session, users, actors, notifier):
    draft = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )
    send_communication(session, notifier, actors.alice, draft.id)

    communication = get_communication(session, actors.bob, draft.id)

    assert communication.id == draft.id
    row = CommunicationRecipientRepository(session).get_for_user(draft.id, users.bob.id)
    assert row.read_status is True
    assert row.read_time is not None
    with pytest.raises(AuthorizationError):
        get_communication(session, actors.carol, draft.id)


def test_sender_viewing_does_not_create_read_marks(session, users, actors, notifier):
    draft = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )
    send_communication(session, notifier, actors.alice, draft.id)

    get_communication(session, actors.alice, draft.id)

    row = CommunicationRecipientRepository(session).get_for_user(draft.id, users.bob.id)
    assert row.read_status is False


def test_mark_communication_read_is_idempotent(session, users, actors, notifier):
    draft = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )
    send_communication(session, notifier, actors.alice, draft.id)

    first = mark_communication_read(session, actors.bob, draft.id)
    second = mark_communication_read(session, actors.bob, draft.id)

    assert first.read_status is True
    assert second.read_time == first.read_time
    with pytest.raises(NotFound):
        mark_communication_read(session, actors.carol, draft.id)
    with pytest.raises(NotFound):
        mark_communication_read(session, actors.bob, 999)


def test_recipient_listing_joins_user_details(session, users, actors, notifier):
    draft = _create(
        session,
        actors.alice,
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id, users.carol.id],
    )
    send_communication(session, notifier, actors.alice, draft.id)
    mark_communication_read(session, actors.carol, draft.id)

    recipients, stats = list_communication_recipients(session, actors.alice, draft.id)

    assert [recipient.user_id for recipient in recipients] == [users.bob.id, users.carol.id]
    assert recipients[0].user_email == users.bob.email
    assert recipients[0].user_role == "member"
    assert (stats.recipient_count, stats.read_count, stats.read_percentage) == (2, 1, 50)
    with pytest.raises(AuthorizationError):
        list_communication_recipients(session, actors.bob, draft.id)


def test_admin_listing_filters_and_reports_read_stats(session, users, actors, notifier):
    sent = _create(session, actors.admin, subject="Budget report", message_type=MessageType.NEWSLETTER)
    _create(session, actors.alice, subject="Lunch plans")
    send_communication(session, notifier, actors.admin, sent.id)

    with pytest.raises(AuthorizationError):
        list_admin_communications(session, actors.alice)

    everything = list_admin_communications(session, actors.admin)
    assert everything.total == 2
    assert everything.items[0][0].id == sent.id

    newsletters = list_admin_communications(
        session, actors.admin, message_type=MessageType.NEWSLETTER
    )
    assert [item.id for item, _ in newsletters.items] == [sent.id]
    assert newsletters.items[0][1].recipient_count == 6

    drafts = list_admin_communications(session, actors.admin, status=CommunicationStatus.DRAFT)
    assert [item.subject for item, _ in drafts.items] == ["Lunch plans"]

    searched = list_admin_communications(session, actors.admin, search="budget")
    assert searched.total == 1

    paged = list_admin_communications(session, actors.admin, skip=1, limit=1)
    assert paged.total == 2 and len(paged.items) == 1


def test_inbox_and_sent_items(session, users, actors, notifier):
    first = _create(
        session,
        actors.alice,
        subject="First",
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )
    second = _create(
        session,
        actors.alice,
        subject="Second",
        recipient_type=RecipientType.SPECIFIC,
        recipient_ids=[users.bob.id],
    )
    send_communication(session, notifier, actors.alice, first.id)
    send_communication(session, notifier, actors.alice, second.id)
    mark_communication_read(session, actors.bob, first.id)

    inbox = list_inbox(session, actors.bob)
    assert inbox.total == 2
    assert inbox.unread_count == 1
    assert {communication.id for communication, _ in inbox.items} == {first.id, second.id}
    read_state = {communication.id: row.read_status for communication, row in inbox.items}
    assert read_state == {first.id: True, second.id: False}

    sent = list_sent_communications(session, actors.alice)
    assert sent.total == 2
    assert list_sent_communications(session, actors.bob).total == 0
