"""Tests for follow-up scheduling."""

import pytest


async def _lead(client, name="Priya"):
    return (await client.post("/api/v1/leads/", json={"name": name, "phone": "+919811111111"})).json()


@pytest.mark.asyncio
async def test_create_follow_up(client):
    lead = await _lead(client)

    resp = await client.post("/api/v1/follow-ups/", json={
        "lead_id": lead["id"],
        "follow_up_date": "2025-04-01T09:30:00",
        "notes": "Send brochure",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["completed"] is False
    assert data["notes"] == "Send brochure"
    assert data["follow_up_date"].startswith("2025-04-01T09:30:00")


@pytest.mark.asyncio
async def test_create_follow_up_normalizes_timezone_to_utc(client):
    lead = await _lead(client)

    resp = await client.post("/api/v1/follow-ups/", json={
        "lead_id": lead["id"],
        "follow_up_date": "2025-04-01T15:00:00+05:30",
    })
    assert resp.json()["follow_up_date"].startswith("2025-04-01T09:30:00")
    assert resp.json()["notes"] == ""


@pytest.mark.asyncio
async def test_create_follow_up_validation(client):
    lead = await _lead(client)

    resp = await client.post("/api/v1/follow-ups/", json={"lead_id": lead["id"]})
    assert resp.status_code == 400
    assert "follow_up_date" in resp.json()["fields"]

    resp = await client.post("/api/v1/follow-ups/", json={
        "lead_id": "00000000-0000-0000-0000-000000000000",
        "follow_up_date": "2025-04-01T09:30:00",
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_pending_follow_ups_soonest_first_with_lead(client):
    first = await _lead(client, "First")
    second = await _lead(client, "Second")

    await client.post("/api/v1/follow-ups/", json={"lead_id": second["id"], "follow_up_date": "2025-05-10T10:00:00"})
    await client.post("/api/v1/follow-ups/", json={"lead_id": first["id"], "follow_up_date": "2025-05-01T10:00:00"})
    done = (await client.post("/api/v1/follow-ups/", json={
        "lead_id": first["id"], "follow_up_date": "2025-04-01T10:00:00",
    })).json()
    await client.put("/api/v1/follow-ups/", json={"id": done["id"], "completed": True})

    resp = await client.get("/api/v1/follow-ups/")
    assert resp.status_code == 200
    items = resp.json()
    assert [item["lead"]["name"] for item in items] == ["First", "Second"]
    assert all(item["completed"] is False for item in items)
    assert items[0]["lead"]["stage"] == "Lead"


@pytest.mark.asyncio
async def test_reschedule_and_complete(client):
    lead = await _lead(client)
    follow_up = (await client.post("/api/v1/follow-ups/", json={
        "lead_id": lead["id"], "follow_up_date": "2025-04-01T09:30:00", "notes": "call back",
    })).json()

    resp = await client.put("/api/v1/follow-ups/", json={"id": follow_up["id"], "follow_up_date": "2025-04-03T11:00:00"})
    assert resp.status_code == 200
    assert resp.json()["follow_up_date"].startswith("2025-04-03T11:00:00")
    assert resp.json()["completed"] is False
    assert resp.json()["notes"] == "call back"

    resp = await client.put("/api/v1/follow-ups/", json={"id": follow_up["id"], "completed": True})
    assert resp.json()["completed"] is True


@pytest.mark.asyncio
async def test_update_follow_up_errors(client):
    resp = await client.put("/api/v1/follow-ups/", json={"completed": True})
    assert resp.status_code == 400
    assert "id" in resp.json()["fields"]

    resp = await client.put("/api/v1/follow-ups/", json={
        "id": "00000000-0000-0000-0000-000000000000", "completed": True,
    })
    assert resp.status_code == 404
