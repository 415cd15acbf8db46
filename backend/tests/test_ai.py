"""AI conversation routes: inbound webhook, replies, mailbox and threads."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from conftest import auth_headers, count_rows
from estatedesk.config import get_settings
from estatedesk.db.models import AiMessage, DeliveryStatus, SenderType
from estatedesk.services import broadcast

settings = get_settings()


@pytest.fixture
def pushed(monkeypatch) -> list[tuple]:
    """Capture what the webhook pushes to connected sockets."""
    sent = []

    async def fake_send_to_user(user_id, message):
        sent.append((user_id, message))
        return 1

    monkeypatch.setattr(broadcast.manager, "send_to_user", fake_send_to_user)
    return sent


# =============================================================================
# INBOUND WEBHOOK
# =============================================================================


async def test_webhook_saves_and_broadcasts(client, user, make_contact, session_factory, pushed):
    contact = await make_contact(user)

    response = await client.post(
        "/ai/webhook",
        json={"message": "Hi Jane, want to see the duplex?", "contactId": str(contact.id), "userId": str(user.id)},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "AI message received and saved."
    assert body["data"]["senderType"] == "AI"
    assert await count_rows(session_factory, AiMessage, sender_type=SenderType.AI) == 1

    assert len(pushed) == 1
    user_id, event = pushed[0]
    assert user_id == user.id
    assert event["type"] == "newMessage"
    assert event["data"]["id"] == body["data"]["id"]
    assert event["data"]["contactId"] == str(contact.id)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"contactId": "c", "userId": "u"},
        {"message": "hi", "userId": "u"},
        {"message": "hi", "contactId": "c"},
        {"message": "", "contactId": "c", "userId": "u"},
        {"message": "hi", "contactId": "not-a-uuid", "userId": "also-not"},
    ],
)
async def test_webhook_invalid_payloads_are_acknowledged(client, user, make_contact, session_factory, pushed, payload):
    contact = await make_contact(user)
    filled = {
        key: {"c": str(contact.id), "u": str(user.id)}.get(value, value) for key, value in payload.items()
    }

    response = await client.post("/ai/webhook", json=filled)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message"].startswith("Received, but")
    assert await count_rows(session_factory, AiMessage) == 0
    assert pushed == []


async def test_webhook_unknown_user(client, user, make_contact, session_factory, pushed):
    contact = await make_contact(user)

    response = await client.post(
        "/ai/webhook", json={"message": "hi", "contactId": str(contact.id), "userId": str(uuid4())}
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Received, but user not found."
    assert await count_rows(session_factory, AiMessage) == 0


async def test_webhook_contact_of_another_user(client, user, other_user, make_contact, session_factory, pushed):
    contact = await make_contact(other_user)

    response = await client.post(
        "/ai/webhook", json={"message": "hi", "contactId": str(contact.id), "userId": str(user.id)}
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Received, but contact not found or invalid."
    assert await count_rows(session_factory, AiMessage) == 0


async def test_webhook_body_not_json(client, session_factory, pushed):
    response = await client.post(
        "/ai/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert await count_rows(session_factory, AiMessage) == 0


async def test_webhook_secret(client, user, make_contact, session_factory, pushed, monkeypatch):
    monkeypatch.setattr(settings, "ai_webhook_secret", "s3cret")
    contact = await make_contact(user)
    payload = {"message": "hi", "contactId": str(contact.id), "userId": str(user.id)}

    rejected = await client.post("/ai/webhook", json=payload, headers={"X-Webhook-Secret": "wrong"})
    missing = await client.post("/ai/webhook", json=payload)
    accepted = await client.post("/ai/webhook", json=payload, headers={"X-Webhook-Secret": "s3cret"})

    assert rejected.status_code == 401
    assert missing.status_code == 401
    assert accepted.status_code == 200
    assert await count_rows(session_factory, AiMessage) == 1


# =============================================================================
# USER REPLIES
# =============================================================================


async def test_reply_without_webhook_url_is_skipped(client, user, make_contact, monkeypatch):
    monkeypatch.setattr(settings, "n8n_reply_webhook_url", None)
    contact = await make_contact(user)

    response = await client.post(
        "/ai/reply", json={"message": "Yes please", "contactId": str(contact.id)}, headers=auth_headers(user)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["data"]["senderType"] == "USER"
    assert body["data"]["deliveryStatus"] == "SKIPPED"
    assert "skipped" in body["message"]


async def test_reply_with_webhook_url_is_queued(client, user, make_contact, session_factory, monkeypatch):
    monkeypatch.setattr(settings, "n8n_reply_webhook_url", "https://n8n.example.com/webhook/reply")
    contact = await make_contact(user)

    response = await client.post(
        "/ai/reply", json={"message": "Yes please", "contactId": str(contact.id)}, headers=auth_headers(user)
    )

    assert response.status_code == 201
    assert response.json()["data"]["deliveryStatus"] == "PENDING"
    assert response.json()["message"] == "User message saved. AI response queued."
    assert await count_rows(session_factory, AiMessage, delivery_status=DeliveryStatus.PENDING) == 1


async def test_reply_validation(client, user, other_user, make_contact):
    contact = await make_contact(other_user)
    headers = auth_headers(user)

    missing = await client.post("/ai/reply", json={"contactId": str(contact.id)}, headers=headers)
    empty = await client.post("/ai/reply", json={"message": "", "contactId": str(contact.id)}, headers=headers)
    foreign = await client.post("/ai/reply", json={"message": "hi", "contactId": str(contact.id)}, headers=headers)

    assert missing.status_code == 400
    assert missing.json()["message"] == "message is required"
    assert empty.status_code == 400
    assert foreign.status_code == 404
    assert foreign.json()["message"] == "Contact not found or access denied"


# =============================================================================
# CONVERSATIONS
# =============================================================================


async def _add_message(session_factory, user, contact, text, at, sender=SenderType.AI):
    async with session_factory() as session:
        session.add(
            AiMessage(message=text, sender_type=sender, user_id=user.id, contact_id=contact.id, created_at=at)
        )
        await session.commit()


async def test_conversation_list_ordered_by_latest_message(client, user, other_user, make_contact, session_factory):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ann = await make_contact(user, name="Ann")
    ben = await make_contact(user, name="Ben")
    cat = await make_contact(user, name="Cat")
    stranger = await make_contact(other_user, name="Stranger")

    await _add_message(session_factory, user, ann, "ann 1", base)
    await _add_message(session_factory, user, ben, "ben 1", base + timedelta(minutes=1))
    await _add_message(session_factory, user, cat, "cat 1", base + timedelta(minutes=2))
    await _add_message(session_factory, user, ann, "ann 2", base + timedelta(minutes=3), sender=SenderType.USER)
    await _add_message(session_factory, other_user, stranger, "not mine", base + timedelta(minutes=9))

    response = await client.get("/ai/conversations", headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert [c["contactName"] for c in body["data"]] == ["Ann", "Cat", "Ben"]
    assert body["data"][0]["lastMessage"]["message"] == "ann 2"
    assert body["data"][0]["contactId"] == str(ann.id)


async def test_conversation_thread_oldest_first(client, user, make_contact, session_factory):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    contact = await make_contact(user)
    await _add_message(session_factory, user, contact, "second", base + timedelta(seconds=5), sender=SenderType.USER)
    await _add_message(session_factory, user, contact, "first", base)

    response = await client.get(f"/ai/conversations/{contact.id}", headers=auth_headers(user))

    body = response.json()
    assert body["count"] == 2
    assert body["contactId"] == str(contact.id)
    assert [m["message"] for m in body["data"]] == ["first", "second"]
    assert body["data"][0]["contact"] == {"id": str(contact.id), "name": "Jane Buyer"}
    assert body["data"][0]["user"] == {"id": str(user.id), "name": "Alice"}


async def test_conversation_of_foreign_contact(client, user, other_user, make_contact):
    contact = await make_contact(other_user)

    response = await client.get(f"/ai/conversations/{contact.id}", headers=auth_headers(user))

    assert response.status_code == 404


async def test_clear_history(client, user, other_user, make_contact, session_factory):
    now = datetime.now(timezone.utc)
    first = await make_contact(user)
    second = await make_contact(user, name="Second")
    theirs = await make_contact(other_user)
    await _add_message(session_factory, user, first, "a", now)
    await _add_message(session_factory, user, second, "b", now)
    await _add_message(session_factory, other_user, theirs, "c", now)
    headers = auth_headers(user)

    narrowed = await client.delete("/ai/conversations", params={"contactId": str(first.id)}, headers=headers)
    assert narrowed.status_code == 200
    assert await count_rows(session_factory, AiMessage, user_id=user.id) == 1

    cleared = await client.delete("/ai/conversations", headers=headers)
    assert cleared.json() == {"success": True, "message": "User's conversation history cleared successfully"}
    assert await count_rows(session_factory, AiMessage, user_id=user.id) == 0
    assert await count_rows(session_factory, AiMessage, user_id=other_user.id) == 1
