# tests/v1/test_conversations.py
"""Tests for conversation endpoints."""

from fastapi import status


def test_resolve_creates_then_reuses(client, alice, bob, auth_headers) -> None:
    """Both participants resolve to the same conversation, in either order."""
    first = client.post(
        "/api/v1/conversations", json={"other_user_id": bob.id}, headers=auth_headers(alice)
    )
    assert first.status_code == status.HTTP_200_OK
    data = first.json()
    assert data["created"] is True
    assert data["other_user"] == {"id": bob.id, "username": "bob"}

    again = client.post(
        "/api/v1/conversations", json={"other_user_id": bob.id}, headers=auth_headers(alice)
    )
    reverse = client.post(
        "/api/v1/conversations", json={"other_user_id": alice.id}, headers=auth_headers(bob)
    )
    assert again.json()["conversation_id"] == data["conversation_id"]
    assert again.json()["created"] is False
    assert reverse.json()["conversation_id"] == data["conversation_id"]
    assert reverse.json()["other_user"]["username"] == "alice"


def test_resolve_with_self_is_rejected(client, alice, auth_headers) -> None:
    response = client.post(
        "/api/v1/conversations", json={"other_user_id": alice.id}, headers=auth_headers(alice)
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid_operation"


def test_resolve_unknown_user(client, alice, auth_headers) -> None:
    response = client.post(
        "/api/v1/conversations", json={"other_user_id": "nobody"}, headers=auth_headers(alice)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "not_found"


def test_missing_token_is_unauthorized(client, alice) -> None:
    response = client.get("/api/v1/conversations")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "unauthorized"
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_unauthorized(client) -> None:
    response = client.get(
        "/api/v1/conversations", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_for_unknown_user_is_unauthorized(client, auth_headers) -> None:
    from parley.models import User

    ghost = User(id="ghost-id", username="ghost")
    headers = auth_headers(ghost)
    response = client.get("/api/v1/conversations", headers=headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_summarises_each_conversation(client, alice, bob, alice_bob, auth_headers) -> None:
    client.post(
        f"/api/v1/conversations/{alice_bob}/messages",
        json={"content": "hello bob"},
        headers=auth_headers(alice),
    )

    response = client.get("/api/v1/conversations", headers=auth_headers(bob))
    assert response.status_code == status.HTTP_200_OK
    [summary] = response.json()
    assert summary["id"] == alice_bob
    assert summary["other_user"] == {"id": alice.id, "username": "alice"}
    assert summary["last_message"]["content"] == "hello bob"
    assert summary["last_message"]["sender_id"] == alice.id
    assert summary["unread_count"] == 1
    assert summary["is_archived"] is False


def test_list_tolerates_conversation_without_messages(client, alice, alice_bob, auth_headers) -> None:
    [summary] = client.get("/api/v1/conversations", headers=auth_headers(alice)).json()
    assert summary["last_message"] is None
    assert summary["unread_count"] == 0


def test_list_orders_by_latest_activity(client, alice, bob, carol, alice_bob, auth_headers) -> None:
    alice_carol = client.post(
        "/api/v1/conversations", json={"other_user_id": carol.id}, headers=auth_headers(alice)
    ).json()["conversation_id"]

    client.post(
        f"/api/v1/conversations/{alice_bob}/messages",
        json={"content": "bump"},
        headers=auth_headers(bob),
    )
    ids = [row["id"] for row in client.get("/api/v1/conversations", headers=auth_headers(alice)).json()]
    assert ids == [alice_bob, alice_carol]

    client.post(
        f"/api/v1/conversations/{alice_carol}/messages",
        json={"content": "bump"},
        headers=auth_headers(carol),
    )
    ids = [row["id"] for row in client.get("/api/v1/conversations", headers=auth_headers(alice)).json()]
    assert ids == [alice_carol, alice_bob]


def test_archive_is_scoped_to_the_caller(client, alice, bob, alice_bob, auth_headers) -> None:
    response = client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice))
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"ok": True}

    assert client.get("/api/v1/conversations", headers=auth_headers(alice)).json() == []
    [for_bob] = client.get("/api/v1/conversations", headers=auth_headers(bob)).json()
    assert for_bob["is_archived"] is False

    [archived] = client.get(
        "/api/v1/conversations",
        params={"include_archived": "true"},
        headers=auth_headers(alice),
    ).json()
    assert archived["id"] == alice_bob
    assert archived["is_archived"] is True


def test_archived_conversation_still_receives_messages(client, alice, bob, alice_bob, auth_headers) -> None:
    client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice))
    sent = client.post(
        f"/api/v1/conversations/{alice_bob}/messages",
        json={"content": "still there?"},
        headers=auth_headers(bob),
    )
    assert sent.status_code == status.HTTP_201_CREATED

    messages = client.get(
        f"/api/v1/conversations/{alice_bob}/messages", headers=auth_headers(alice)
    ).json()
    assert [m["content"] for m in messages] == ["still there?"]


def test_archive_twice_is_harmless(client, alice, alice_bob, auth_headers) -> None:
    for _ in range(2):
        response = client.post(
            f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice)
        )
        assert response.status_code == status.HTTP_200_OK


def test_unarchive_restores_the_conversation(client, alice, alice_bob, auth_headers) -> None:
    client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice))
    response = client.delete(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice))
    assert response.status_code == status.HTTP_200_OK

    [summary] = client.get("/api/v1/conversations", headers=auth_headers(alice)).json()
    assert summary["is_archived"] is False


def test_recontact_unarchives_for_requester_only(client, alice, bob, alice_bob, auth_headers) -> None:
    client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(alice))
    client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(bob))

    resolved = client.post(
        "/api/v1/conversations", json={"other_user_id": bob.id}, headers=auth_headers(alice)
    ).json()
    assert resolved["conversation_id"] == alice_bob

    assert [row["id"] for row in client.get("/api/v1/conversations", headers=auth_headers(alice)).json()] == [
        alice_bob
    ]
    assert client.get("/api/v1/conversations", headers=auth_headers(bob)).json() == []


def test_archive_by_non_participant_is_not_found(client, carol, alice_bob, auth_headers) -> None:
    response = client.post(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(carol))
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.delete(f"/api/v1/conversations/{alice_bob}/archive", headers=auth_headers(carol))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_aggregate_unread_skips_archived(client, alice, bob, carol, alice_bob, auth_headers) -> None:
    carol_alice = client.post(
        "/api/v1/conversations", json={"other_user_id": alice.id}, headers=auth_headers(carol)
    ).json()["conversation_id"]

    for text in ("one", "two"):
        client.post(
            f"/api/v1/conversations/{alice_bob}/messages",
            json={"content": text},
            headers=auth_headers(bob),
        )
    client.post(
        f"/api/v1/conversations/{carol_alice}/messages",
        json={"content": "hi"},
        headers=auth_headers(carol),
    )

    total = client.get("/api/v1/conversations/unread-count", headers=auth_headers(alice))
    assert total.status_code == status.HTTP_200_OK
    assert total.json() == {"count": 3}

    client.post(f"/api/v1/conversations/{carol_alice}/archive", headers=auth_headers(alice))
    total = client.get("/api/v1/conversations/unread-count", headers=auth_headers(alice))
    assert total.json() == {"count": 2}

    single = client.get(f"/api/v1/conversations/{carol_alice}/unread-count", headers=auth_headers(alice))
    assert single.json() == {"count": 1}
