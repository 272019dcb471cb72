"""Tests for the activity log endpoints."""

import pytest


@pytest.fixture
def lead_payload():
    return {"name": "Margaret", "phone": "+919800000001"}


@pytest.mark.asyncio
async def test_append_activity(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()

    resp = await client.post("/api/v1/activities/", json={
        "lead_id": lead["id"],
        "type": "Call",
        "details": {"duration_minutes": 12, "outcome": "interested"},
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["lead_id"] == lead["id"]
    assert data["type"] == "Call"
    assert data["details"]["outcome"] == "interested"


@pytest.mark.asyncio
async def test_append_activity_defaults_details(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()

    resp = await client.post("/api/v1/activities/", json={"lead_id": lead["id"], "type": "Note"})
    assert resp.status_code == 201
    assert resp.json()["details"] == {}


@pytest.mark.asyncio
async def test_append_activity_requires_type(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()

    resp = await client.post("/api/v1/activities/", json={"lead_id": lead["id"]})
    assert resp.status_code == 400
    assert "type" in resp.json()["fields"]

    resp = await client.post("/api/v1/activities/", json={"lead_id": lead["id"], "type": "  "})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_append_activity_to_missing_lead_is_404(client):
    resp = await client.post("/api/v1/activities/", json={
        "lead_id": "00000000-0000-0000-0000-000000000000",
        "type": "Note",
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stage_change_activity_details_are_checked(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()

    resp = await client.post("/api/v1/activities/", json={
        "lead_id": lead["id"],
        "type": "Lead Stage Changed",
        "details": {"from_stage": "Lead", "to_stage": "Graduated"},
    })
    assert resp.status_code == 400
    assert "details.to_stage" in resp.json()["fields"]


@pytest.mark.asyncio
async def test_list_lead_activities_newest_first(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()
    for label in ("first", "second", "third"):
        await client.post("/api/v1/activities/", json={"lead_id": lead["id"], "type": "Note", "details": {"text": label}})

    resp = await client.get(f"/api/v1/leads/{lead['id']}/activities")
    assert [a["details"]["text"] for a in resp.json()] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_update_activity(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()
    activity = (await client.post("/api/v1/activities/", json={
        "lead_id": lead["id"], "type": "Call", "details": {"outcome": "no answer"},
    })).json()

    resp = await client.put(f"/api/v1/activities/{activity['id']}", json={"type": "Meeting"})
    assert resp.status_code == 200
    assert resp.json()["type"] == "Meeting"
    assert resp.json()["details"] == {"outcome": "no answer"}

    resp = await client.put(f"/api/v1/activities/{activity['id']}", json={"details": {"outcome": "booked"}})
    assert resp.json()["details"] == {"outcome": "booked"}


@pytest.mark.asyncio
async def test_update_missing_activity_is_404(client):
    resp = await client.put("/api/v1/activities/00000000-0000-0000-0000-000000000000", json={"type": "Note"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_activity(client, lead_payload):
    lead = (await client.post("/api/v1/leads/", json=lead_payload)).json()
    activity = (await client.post("/api/v1/activities/", json={"lead_id": lead["id"], "type": "Email"})).json()

    resp = await client.delete(f"/api/v1/activities/{activity['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = await client.get(f"/api/v1/leads/{lead['id']}/activities")
    assert resp.json() == []

    resp = await client.delete(f"/api/v1/activities/{activity['id']}")
    assert resp.status_code == 404
