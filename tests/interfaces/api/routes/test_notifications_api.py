"""HTTP and websocket tests for the notification center."""

from __future__ import annotations

from datetime import timedelta

import pytest
from starlette.websockets import WebSocketDisconnect

from portal.utils import now_in_app_timezone


@pytest.fixture()
def sent_to_bob(client, users, auth_headers):
    """Send an urgent communication from Alice to Bob and return its id."""

    alice = auth_headers(users.alice)
    communication_id = client.post(
        "/communications/",
        json={
            "subject": "Water outage",
            "content": "Water is off on Tuesday morning.",
            "recipient_type": "specific",
            "recipient_ids": [users.bob.id],
            "priority": "urgent",
        },
        headers=alice,
    ).json()["id"]
    response = client.post(f"/communications/{communication_id}/send", headers=alice)
    assert response.status_code == 200
    return communication_id


def test_listing_and_stats(client, users, auth_headers, sent_to_bob) -> None:
    bob = auth_headers(users.bob)

    listing = client.get("/notifications/", headers=bob)
    assert listing.status_code == 200
    body = listing.json()
    assert (body["total"], body["unread_count"], body["page"], body["pages"]) == (1, 1, 1, 1)
    item = body["items"][0]
    assert item["communication_id"] == sent_to_bob
    assert item["type"] == "communication"
    assert item["title"] == "Water outage"
    assert item["priority"] == "urgent"
    assert item["payload"]["sender_name"] == "Alice Member"
    assert item["expires_at"] is not None

    filtered = client.get("/notifications/", params={"type": "system"}, headers=bob)
    assert filtered.json()["total"] == 0

    stats = client.get("/notifications/stats", headers=bob).json()
    assert stats["unread"] == 1
    assert stats["read"] == 0
    assert stats["by_type"]["communication"] == 1
    assert stats["unread_by_priority"]["urgent"] == 1

    assert client.get("/notifications/", headers=auth_headers(users.carol)).json()["total"] == 0


def test_read_displayed_and_delete(client, users, auth_headers, sent_to_bob) -> None:
    bob = auth_headers(users.bob)
    notification_id = client.get("/notifications/", headers=bob).json()["items"][0]["id"]

    carol = auth_headers(users.carol)
    assert client.put(f"/notifications/{notification_id}/read", headers=carol).status_code == 403

    displayed = client.put(f"/notifications/{notification_id}/displayed", headers=bob)
    assert displayed.status_code == 200
    assert displayed.json()["is_displayed"] is True

    read = client.put(f"/notifications/{notification_id}/read", headers=bob)
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert client.get("/notifications/", params={"unread_only": True}, headers=bob).json()[
        "total"
    ] == 0

    assert client.delete(f"/notifications/{notification_id}", headers=bob).status_code == 204
    assert client.delete(f"/notifications/{notification_id}", headers=bob).status_code == 404


def test_unread_feed_skips_expired_entries(client, users, auth_headers, add_notification) -> None:
    now = now_in_app_timezone()
    add_notification(users.bob, "current", expires_at=now + timedelta(days=1))
    add_notification(users.bob, "stale", expires_at=now - timedelta(hours=1))
    bob = auth_headers(users.bob)

    unread = client.get("/notifications/unread", headers=bob)

    assert unread.status_code == 200
    assert [item["title"] for item in unread.json()] == ["current"]
    assert unread.json()[0]["is_displayed"] is False
    assert client.get("/notifications/unread", headers=bob).json()[0]["is_displayed"] is True


def test_mark_all_read(client, users, auth_headers, sent_to_bob) -> None:
    bob = auth_headers(users.bob)

    first = client.put("/notifications/mark-all-read", headers=bob)
    second = client.put("/notifications/mark-all-read", headers=bob)

    assert first.json() == {"updated": 1}
    assert second.json() == {"updated": 0}


def test_create_for_communication(client, users, auth_headers, sent_to_bob, notifier) -> None:
    payload = {"communication_id": sent_to_bob}

    forbidden = client.post(
        "/notifications/create-for-communication", json=payload, headers=auth_headers(users.alice)
    )
    assert forbidden.status_code == 403

    notifier.calls.clear()
    created = client.post(
        "/notifications/create-for-communication", json=payload, headers=auth_headers(users.admin)
    )
    assert created.status_code == 201
    assert created.json()["notification_count"] == 1
    assert notifier.user_ids == {users.bob.id}

    missing = client.post(
        "/notifications/create-for-communication",
        json={"communication_id": 999},
        headers=auth_headers(users.admin),
    )
    assert missing.status_code == 404


def test_create_for_draft_is_rejected(client, users, auth_headers) -> None:
    admin = auth_headers(users.admin)
    communication_id = client.post(
        "/communications/",
        json={"subject": "Draft", "content": "Not sent", "recipient_type": "all"},
        headers=admin,
    ).json()["id"]

    response = client.post(
        "/notifications/create-for-communication",
        json={"communication_id": communication_id},
        headers=admin,
    )

    assert response.status_code == 400


def _ws_token(auth_headers, user) -> str:
    return auth_headers(user)["Authorization"].removeprefix("Bearer ")


def test_websocket_sends_pending_notifications_and_answers_ping(
    client, users, auth_headers, sent_to_bob
) -> None:
    token = _ws_token(auth_headers, users.bob)

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert [item["communication_id"] for item in init["data"]] == [sent_to_bob]

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_json({"type": "ack", "ids": [init["data"][0]["id"]]})
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

    listing = client.get("/notifications/", headers=auth_headers(users.bob)).json()
    assert listing["unread_count"] == 0
    assert listing["items"][0]["is_displayed"] is True


def test_websocket_rejects_bad_tokens(client, users) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/notifications/ws?token=not-a-jwt") as websocket:
            websocket.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/notifications/ws") as websocket:
            websocket.receive_json()
