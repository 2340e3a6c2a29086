# tests/v1/test_messages.py
"""Tests for message endpoints and read state."""

from datetime import datetime

from fastapi import status


def _send(client, conversation_id, user, auth_headers, content, **extra):
    return client.post(
        f"/api/v1/conversations/{conversation_id}/messages",
        json={"content": content, **extra},
        headers=auth_headers(user),
    )


def _unread(client, conversation_id, user, auth_headers) -> int:
    response = client.get(
        f"/api/v1/conversations/{conversation_id}/unread-count", headers=auth_headers(user)
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()["count"]


def test_send_message(client, alice, alice_bob, auth_headers) -> None:
    response = _send(client, alice_bob, alice, auth_headers, "  hello  ", client_message_id="c-1")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["content"] == "hello"
    assert data["sender_id"] == alice.id
    assert data["sender_username"] == "alice"
    assert data["conversation_id"] == alice_bob
    assert data["client_message_id"] == "c-1"


def test_client_message_id_is_optional(client, alice, alice_bob, auth_headers) -> None:
    data = _send(client, alice_bob, alice, auth_headers, "hi").json()
    assert data["client_message_id"] is None


def test_repeated_send_is_stored_once(client, alice, bob, alice_bob, auth_headers) -> None:
    first = _send(client, alice_bob, alice, auth_headers, "once", client_message_id="c-7")
    again = _send(client, alice_bob, alice, auth_headers, "once", client_message_id="c-7")
    assert again.status_code == 201
    assert again.json()["id"] == first.json()["id"]

    listed = client.get(
        f"/api/v1/conversations/{alice_bob}/messages", headers=auth_headers(bob)
    ).json()
    assert [(m["content"], m["client_message_id"]) for m in listed] == [("once", "c-7")]

    assert _unread(client, alice_bob, bob, auth_headers) == 1


def test_messages_are_listed_in_send_order(client, alice, bob, alice_bob, auth_headers) -> None:
    sent = [
        _send(client, alice_bob, alice, auth_headers, "first").json(),
        _send(client, alice_bob, bob, auth_headers, "second").json(),
        _send(client, alice_bob, alice, auth_headers, "first").json(),
    ]
    assert len({m["id"] for m in sent}) == 3

    for viewer in (alice, bob):
        listed = client.get(
            f"/api/v1/conversations/{alice_bob}/messages", headers=auth_headers(viewer)
        ).json()
        assert [m["id"] for m in listed] == [m["id"] for m in sent]
        stamps = [datetime.fromisoformat(m["created_at"]) for m in listed]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 3


def test_empty_message_is_rejected(client, alice, alice_bob, auth_headers) -> None:
    for content in ("", "   \n\t "):
        response = _send(client, alice_bob, alice, auth_headers, content)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["code"] == "invalid_input"

    listed = client.get(f"/api/v1/conversations/{alice_bob}/messages", headers=auth_headers(alice))
    assert listed.json() == []


def test_oversized_message_is_rejected(client, alice, alice_bob, auth_headers, test_settings) -> None:
    response = _send(client, alice_bob, alice, auth_headers, "x" * (test_settings.message_max_length + 1))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = _send(client, alice_bob, alice, auth_headers, "x" * test_settings.message_max_length)
    assert response.status_code == status.HTTP_201_CREATED


def test_stranger_cannot_send_or_read(client, carol, alice_bob, auth_headers) -> None:
    response = _send(client, alice_bob, carol, auth_headers, "let me in")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "forbidden"

    response = client.get(f"/api/v1/conversations/{alice_bob}/messages", headers=auth_headers(carol))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_unknown_conversation_is_not_found(client, alice, auth_headers) -> None:
    response = _send(client, "missing", alice, auth_headers, "hello?")
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.get("/api/v1/conversations/missing/messages", headers=auth_headers(alice))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_read_and_reply_scenario(client, alice, bob, alice_bob, auth_headers) -> None:
    """Unread counts follow a two-message exchange, a read and a reply."""
    _send(client, alice_bob, alice, auth_headers, "ping")
    _send(client, alice_bob, alice, auth_headers, "ping again")
    assert _unread(client, alice_bob, bob, auth_headers) == 2
    assert _unread(client, alice_bob, alice, auth_headers) == 0

    response = client.post(f"/api/v1/conversations/{alice_bob}/read", headers=auth_headers(bob))
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"ok": True}
    assert _unread(client, alice_bob, bob, auth_headers) == 0

    _send(client, alice_bob, bob, auth_headers, "pong")
    assert _unread(client, alice_bob, alice, auth_headers) == 1
    assert _unread(client, alice_bob, bob, auth_headers) == 0


def test_mark_read_is_idempotent(client, alice, bob, alice_bob, auth_headers) -> None:
    _send(client, alice_bob, alice, auth_headers, "hello")
    for _ in range(2):
        response = client.post(f"/api/v1/conversations/{alice_bob}/read", headers=auth_headers(bob))
        assert response.status_code == status.HTTP_200_OK
        assert _unread(client, alice_bob, bob, auth_headers) == 0


def test_unread_grows_with_each_new_message(client, alice, bob, alice_bob, auth_headers) -> None:
    counts = []
    for n in range(3):
        _send(client, alice_bob, alice, auth_headers, f"message {n}")
        counts.append(_unread(client, alice_bob, bob, auth_headers))
    assert counts == [1, 2, 3]


def test_mark_read_by_non_participant_is_not_found(client, carol, alice_bob, auth_headers) -> None:
    response = client.post(f"/api/v1/conversations/{alice_bob}/read", headers=auth_headers(carol))
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.get(
        f"/api/v1/conversations/{alice_bob}/unread-count", headers=auth_headers(carol)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
