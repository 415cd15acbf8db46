"""Investor questionnaire routes."""

from conftest import auth_headers


def questionnaire_payload(contact_id) -> dict:
    return {
        "isAccreditedInvestor": True,
        "hasInvestedBefore": False,
        "lookingTimeframe": "3-6 months",
        "primaryInvestmentGoal": "Cash flow",
        "investmentTimeline": "Long term",
        "capitalToInvest": "$100k-$250k",
        "useFinancing": True,
        "marketsInterested": ["Indianapolis", "Memphis"],
        "propertyTypesInterested": ["Single Family"],
        "investmentTimeframe": "5+ years",
        "contactId": str(contact_id),
    }


async def test_create_questionnaire(client, user, make_contact):
    contact = await make_contact(user)

    response = await client.post("/questionnaires", json=questionnaire_payload(contact.id), headers=auth_headers(user))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["marketsInterested"] == ["Indianapolis", "Memphis"]
    assert data["isAccreditedInvestor"] is True
    assert data["contact"]["id"] == str(contact.id)


async def test_malformed_lists_become_empty(client, user, make_contact):
    contact = await make_contact(user)
    payload = questionnaire_payload(contact.id) | {"marketsInterested": "Indianapolis", "propertyTypesInterested": None}

    response = await client.post("/questionnaires", json=payload, headers=auth_headers(user))

    assert response.status_code == 201
    assert response.json()["data"]["marketsInterested"] == []
    assert response.json()["data"]["propertyTypesInterested"] == []


async def test_missing_answer_is_named(client, user, make_contact):
    contact = await make_contact(user)
    payload = questionnaire_payload(contact.id)
    del payload["useFinancing"]

    response = await client.post("/questionnaires", json=payload, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json()["message"] == "useFinancing is required"


async def test_list_by_contact_and_sort(client, user, make_contact):
    first = await make_contact(user)
    second = await make_contact(user, name="Other")
    headers = auth_headers(user)
    await client.post("/questionnaires", json=questionnaire_payload(first.id), headers=headers)
    await client.post("/questionnaires", json=questionnaire_payload(second.id), headers=headers)

    response = await client.get(
        "/questionnaires",
        params={"contactId": str(second.id), "sortBy": "investmentTimeframe"},
        headers=headers,
    )

    assert response.json()["pagination"]["total"] == 1
    assert response.json()["data"][0]["contactId"] == str(second.id)


async def test_update_and_delete(client, user, other_user, make_contact):
    contact = await make_contact(user)
    created = await client.post("/questionnaires", json=questionnaire_payload(contact.id), headers=auth_headers(user))
    questionnaire_id = created.json()["data"]["id"]

    hidden = await client.put(
        f"/questionnaires/{questionnaire_id}", json={"notes": "x"}, headers=auth_headers(other_user)
    )
    assert hidden.status_code == 404

    updated = await client.put(
        f"/questionnaires/{questionnaire_id}",
        json={"marketsInterested": ["Austin"], "notes": "Prefers duplexes"},
        headers=auth_headers(user),
    )
    assert updated.json()["data"]["marketsInterested"] == ["Austin"]
    assert updated.json()["data"]["notes"] == "Prefers duplexes"

    deleted = await client.delete(f"/questionnaires/{questionnaire_id}", headers=auth_headers(user))
    assert deleted.status_code == 200
    gone = await client.get(f"/questionnaires/{questionnaire_id}", headers=auth_headers(user))
    assert gone.status_code == 404


async def test_contact_scoped_list(client, user, other_user, make_contact):
    contact = await make_contact(user)
    await client.post("/questionnaires", json=questionnaire_payload(contact.id), headers=auth_headers(user))

    mine = await client.get(f"/contacts/{contact.id}/questionnaires", headers=auth_headers(user))
    theirs = await client.get(f"/contacts/{contact.id}/questionnaires", headers=auth_headers(other_user))

    assert mine.json()["pagination"]["total"] == 1
    assert theirs.status_code == 404
