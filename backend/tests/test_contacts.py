"""Contact routes: CRUD, ownership, tags, pipeline stage and PIN lookup."""

from uuid import uuid4

from conftest import auth_headers, count_rows
from estatedesk.db.models import Contact, InvestmentCalculation


async def test_create_contact(client, user):
    response = await client.post(
        "/contacts",
        json={
            "name": "Jane Buyer",
            "phoneNumber": "555-0100",
            "email": "jane@example.com",
            "tags": ["investor", " investor ", "", "cash"],
            "pipelineStage": "new",
        },
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Contact created successfully"
    assert body["data"]["phoneNumber"] == "555-0100"
    assert body["data"]["tags"] == ["investor", "cash"]
    assert body["data"]["createdBy"] == str(user.id)


async def test_create_contact_requires_name(client, user):
    response = await client.post("/contacts", json={"phoneNumber": "555-0100"}, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "name is required"}


async def test_requires_authentication(client):
    response = await client.get("/contacts")

    assert response.status_code == 401
    assert response.json()["success"] is False


async def test_invalid_token_is_rejected(client):
    response = await client.get("/contacts", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_get_contact(client, user, make_contact):
    contact = await make_contact(user)

    response = await client.get(f"/contacts/{contact.id}", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Jane Buyer"


async def test_foreign_contact_looks_like_missing_contact(client, user, other_user, make_contact, session_factory):
    contact = await make_contact(other_user)
    headers = auth_headers(user)

    missing = await client.get(f"/contacts/{uuid4()}", headers=headers)
    foreign = await client.get(f"/contacts/{contact.id}", headers=headers)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    missing = await client.put(f"/contacts/{uuid4()}", json={"name": "X"}, headers=headers)
    foreign = await client.put(f"/contacts/{contact.id}", json={"name": "X"}, headers=headers)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    missing = await client.delete(f"/contacts/{uuid4()}", headers=headers)
    foreign = await client.delete(f"/contacts/{contact.id}", headers=headers)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    assert await count_rows(session_factory, Contact, id=contact.id) == 1


async def test_admin_can_read_but_not_modify_foreign_contact(client, user, admin, make_contact):
    contact = await make_contact(user)

    read = await client.get(f"/contacts/{contact.id}", headers=auth_headers(admin))
    update = await client.put(f"/contacts/{contact.id}", json={"name": "X"}, headers=auth_headers(admin))

    assert read.status_code == 200
    assert update.status_code == 404


async def test_update_contact_is_partial(client, user, make_contact):
    contact = await make_contact(user, email="old@example.com", status="lead")

    response = await client.put(
        f"/contacts/{contact.id}",
        json={"status": "client", "name": None},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "client"
    assert data["name"] == "Jane Buyer"
    assert data["email"] == "old@example.com"


async def test_delete_contact(client, user, make_contact, session_factory):
    contact = await make_contact(user)

    response = await client.delete(f"/contacts/{contact.id}", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Contact deleted successfully"}
    assert await count_rows(session_factory, Contact, id=contact.id) == 0


async def test_add_tags_is_idempotent(client, user, make_contact):
    contact = await make_contact(user, tags=["investor"])
    headers = auth_headers(user)

    first = await client.put(f"/contacts/{contact.id}/tags/add", json={"tags": ["vip", "investor"]}, headers=headers)
    second = await client.put(f"/contacts/{contact.id}/tags/add", json={"tags": ["vip"]}, headers=headers)

    assert first.json()["data"]["tags"] == ["investor", "vip"]
    assert second.json()["data"]["tags"] == ["investor", "vip"]
    assert second.json()["message"] == "Tags added successfully"


async def test_remove_absent_tag_is_noop(client, user, make_contact):
    contact = await make_contact(user, tags=["investor", "vip"])
    headers = auth_headers(user)

    response = await client.put(f"/contacts/{contact.id}/tags/remove", json={"tags": ["cold"]}, headers=headers)
    assert response.json()["data"]["tags"] == ["investor", "vip"]

    response = await client.put(f"/contacts/{contact.id}/tags/remove", json={"tags": ["vip"]}, headers=headers)
    assert response.json()["data"]["tags"] == ["investor"]


async def test_tags_of_foreign_contact_are_not_found(client, user, other_user, make_contact):
    contact = await make_contact(other_user)

    response = await client.put(f"/contacts/{contact.id}/tags/add", json={"tags": ["x"]}, headers=auth_headers(user))

    assert response.status_code == 404
    assert response.json()["message"] == "Contact not found or access denied"


async def test_update_pipeline_stage(client, user, make_contact):
    contact = await make_contact(user)

    response = await client.put(
        f"/contacts/{contact.id}/pipeline-stage",
        json={"pipelineStage": "under-contract"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["data"]["pipelineStage"] == "under-contract"
    assert response.json()["message"] == "Pipeline stage updated successfully"


async def test_filter_by_status(client, user, make_contact):
    await make_contact(user, name="Lead", status="lead")
    await make_contact(user, name="Client", status="client")

    response = await client.get("/contacts", params={"status": "client"}, headers=auth_headers(user))

    assert [c["name"] for c in response.json()["data"]] == ["Client"]


async def test_pin_lookup(client, user, other_user, make_contact):
    await make_contact(user, phone_number="555-0199", pin="4321")
    await make_contact(other_user, phone_number="555-0200", pin="9999")
    headers = auth_headers(user)

    found = await client.post("/contacts/pin", json={"phoneNumber": "555-0199"}, headers=headers)
    foreign = await client.post("/contacts/pin", json={"phoneNumber": "555-0200"}, headers=headers)

    assert found.status_code == 200
    assert found.json()["data"]["pin"] == "4321"
    assert foreign.status_code == 404
    assert foreign.json()["message"] == "Contact not found or PIN not set"


async def test_pin_lookup_without_pin(client, user, make_contact):
    await make_contact(user, phone_number="555-0199")

    response = await client.post("/contacts/pin", json={"phoneNumber": "555-0199"}, headers=auth_headers(user))

    assert response.status_code == 404


async def test_contact_scoped_calculation_list(client, user, make_contact, session_factory):
    contact = await make_contact(user)
    other_contact = await make_contact(user, name="Someone Else")
    async with session_factory() as session:
        session.add_all(
            [
                InvestmentCalculation(contact_id=contact.id, created_by=user.id, roi=5.0),
                InvestmentCalculation(contact_id=contact.id, created_by=user.id, roi=7.5),
                InvestmentCalculation(contact_id=other_contact.id, created_by=user.id, roi=1.0),
            ]
        )
        await session.commit()

    response = await client.get(
        f"/contacts/{contact.id}/calculations",
        params={"sortBy": "roi", "order": "asc"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert [c["roi"] for c in response.json()["data"]] == [5.0, 7.5]
    assert response.json()["data"][0]["contact"]["name"] == "Jane Buyer"
