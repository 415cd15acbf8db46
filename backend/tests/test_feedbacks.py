"""Video feedback routes: public submission and the admin gate."""

from uuid import uuid4

import pytest

from conftest import auth_headers, count_rows
from estatedesk.db.models import Video, VideoFeedback


@pytest.fixture
async def video(session_factory, user) -> Video:
    async with session_factory() as session:
        video = Video(title="Market update", video_url="https://videos.example.com/m", created_by=user.id)
        session.add(video)
        await session.commit()
        return video


async def test_public_create(client, video, make_contact, user):
    contact = await make_contact(user)

    response = await client.post(
        "/feedbacks",
        json={"videoId": str(video.id), "responses": {"helpful": "yes", "rating": 5}, "contactId": str(contact.id)},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["responses"] == {"helpful": "yes", "rating": 5}
    assert data["video"]["title"] == "Market update"
    assert data["contact"]["id"] == str(contact.id)
    assert response.json()["message"] == "Video feedback created successfully"


async def test_create_rejects_non_object_responses(client, video, session_factory):
    response = await client.post("/feedbacks", json={"videoId": str(video.id), "responses": ["yes"]})

    assert response.status_code == 400
    assert response.json()["message"] == "responses must be a valid JSON object"
    assert await count_rows(session_factory, VideoFeedback) == 0


async def test_create_for_unknown_video(client):
    response = await client.post("/feedbacks", json={"videoId": str(uuid4()), "responses": {}})

    assert response.status_code == 404
    assert response.json()["message"] == "Video not found"


async def test_create_with_unknown_contact(client, video):
    response = await client.post(
        "/feedbacks", json={"videoId": str(video.id), "responses": {}, "contactId": str(uuid4())}
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Contact not found"


async def test_admin_gate(client, user, video):
    await client.post("/feedbacks", json={"videoId": str(video.id), "responses": {"q": "a"}})

    anonymous = await client.get("/feedbacks")
    as_user = await client.get("/feedbacks", headers=auth_headers(user))

    assert anonymous.status_code == 401
    assert as_user.status_code == 403
    assert as_user.json()["success"] is False
    assert (await client.get(f"/feedbacks/videos/{video.id}", headers=auth_headers(user))).status_code == 403


async def test_admin_list_get_update_delete(client, admin, video, session_factory):
    created = await client.post("/feedbacks", json={"videoId": str(video.id), "responses": {"q": "a"}})
    feedback_id = created.json()["data"]["id"]
    headers = auth_headers(admin)

    listed = await client.get("/feedbacks", params={"videoId": str(video.id)}, headers=headers)
    assert listed.json()["pagination"]["total"] == 1

    fetched = await client.get(f"/feedbacks/{feedback_id}", headers=headers)
    assert fetched.json()["data"]["responses"] == {"q": "a"}

    updated = await client.put(f"/feedbacks/{feedback_id}", json={"responses": {"q": "b"}}, headers=headers)
    assert updated.json()["data"]["responses"] == {"q": "b"}
    assert updated.json()["message"] == "Video feedback updated successfully"

    bad_video = await client.put(f"/feedbacks/{feedback_id}", json={"videoId": str(uuid4())}, headers=headers)
    assert bad_video.status_code == 404

    deleted = await client.delete(f"/feedbacks/{feedback_id}", headers=headers)
    assert deleted.json() == {"success": True, "message": "Video feedback deleted successfully"}
    assert await count_rows(session_factory, VideoFeedback) == 0

    missing = await client.delete(f"/feedbacks/{feedback_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Video feedback not found"


async def test_feedbacks_by_video_and_contact(client, admin, user, video, make_contact):
    contact = await make_contact(user)
    await client.post("/feedbacks", json={"videoId": str(video.id), "responses": {}, "contactId": str(contact.id)})
    await client.post("/feedbacks", json={"videoId": str(video.id), "responses": {}})
    headers = auth_headers(admin)

    by_video = await client.get(f"/feedbacks/videos/{video.id}", headers=headers)
    by_contact = await client.get(f"/feedbacks/contacts/{contact.id}", headers=headers)
    unknown_video = await client.get(f"/feedbacks/videos/{uuid4()}", headers=headers)

    assert by_video.json()["pagination"]["total"] == 2
    assert by_contact.json()["pagination"]["total"] == 1
    assert unknown_video.status_code == 404


async def test_owner_sees_feedback_of_own_contact(client, user, other_user, video, make_contact):
    contact = await make_contact(user)
    await client.post("/feedbacks", json={"videoId": str(video.id), "responses": {}, "contactId": str(contact.id)})

    mine = await client.get(f"/contacts/{contact.id}/feedbacks", headers=auth_headers(user))
    theirs = await client.get(f"/contacts/{contact.id}/feedbacks", headers=auth_headers(other_user))

    assert mine.json()["pagination"]["total"] == 1
    assert theirs.status_code == 404
