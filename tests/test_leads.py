"""Tests for lead CRUD, filtering and cascade delete."""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from crm.models.activity import Activity
from crm.models.follow_up import FollowUp
from crm.models.lead import Lead, LeadStage


@pytest.mark.asyncio
async def test_create_lead_defaults_stage(client):
    resp = await client.post("/api/v1/leads/", json={"name": "Ada", "email": "ada@x.com"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Ada"
    assert data["email"] == "ada@x.com"
    assert data["stage"] == "Lead"
    assert data["id"]
    assert data["created_at"]


@pytest.mark.asyncio
async def test_create_lead_null_or_empty_stage_means_lead(client):
    resp = await client.post("/api/v1/leads/", json={"name": "Null Stage", "stage": None})
    assert resp.json()["stage"] == "Lead"

    resp = await client.post("/api/v1/leads/", json={"name": "Empty Stage", "stage": ""})
    assert resp.json()["stage"] == "Lead"


@pytest.mark.asyncio
async def test_create_lead_with_explicit_stage(client):
    resp = await client.post("/api/v1/leads/", json={"name": "Grace", "stage": "Next Cohort"})
    assert resp.status_code == 201
    assert resp.json()["stage"] == "Next Cohort"


@pytest.mark.asyncio
async def test_create_lead_requires_name(client):
    resp = await client.post("/api/v1/leads/", json={"email": "noname@x.com"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert "name" in body["fields"]


@pytest.mark.asyncio
async def test_create_lead_rejects_blank_name(client):
    resp = await client.post("/api/v1/leads/", json={"name": "   "})
    assert resp.status_code == 400
    assert "name" in resp.json()["fields"]


@pytest.mark.asyncio
async def test_create_lead_rejects_unknown_stage(client):
    resp = await client.post("/api/v1/leads/", json={"name": "Bad", "stage": "Churned"})
    assert resp.status_code == 400
    assert "stage" in resp.json()["fields"]


@pytest.mark.asyncio
async def test_create_lead_rejects_malformed_email(client):
    resp = await client.post("/api/v1/leads/", json={"name": "Bad Email", "email": "not-an-email"})
    assert resp.status_code == 400
    assert "email" in resp.json()["fields"]


@pytest.mark.asyncio
async def test_get_lead(client):
    created = (await client.post("/api/v1/leads/", json={"name": "Linus"})).json()

    resp = await client.get(f"/api/v1/leads/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Linus"


@pytest.mark.asyncio
async def test_get_missing_lead_is_404(client):
    resp = await client.get("/api/v1/leads/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_list_leads_newest_first_with_filters(client, db):
    db.add_all([
        Lead(name="Alice Smith", source="Instagram Ads", stage=LeadStage.LEAD, created_at=datetime(2025, 1, 5, 10)),
        Lead(name="Bob Jones", source="Referral", stage=LeadStage.PROSPECT, created_at=datetime(2025, 1, 20, 23, 30)),
        Lead(name="alice cooper", source="instagram", stage=LeadStage.PROSPECT, created_at=datetime(2025, 2, 1, 9)),
    ])
    await db.commit()

    resp = await client.get("/api/v1/leads/")
    names = [lead["name"] for lead in resp.json()]
    assert names == ["alice cooper", "Bob Jones", "Alice Smith"]

    resp = await client.get("/api/v1/leads/", params={"name": "ALICE"})
    assert {lead["name"] for lead in resp.json()} == {"Alice Smith", "alice cooper"}

    resp = await client.get("/api/v1/leads/", params={"source": "insta", "stage": "Prospect"})
    assert [lead["name"] for lead in resp.json()] == ["alice cooper"]

    # "to" covers the whole end day
    resp = await client.get("/api/v1/leads/", params={"from": "2025-01-06", "to": "2025-01-20"})
    assert [lead["name"] for lead in resp.json()] == ["Bob Jones"]


@pytest.mark.asyncio
async def test_list_leads_name_filter_treats_wildcards_literally(client, db):
    db.add_all([Lead(name="100% Sure"), Lead(name="1000 Sure")])
    await db.commit()

    resp = await client.get("/api/v1/leads/", params={"name": "100%"})
    assert [lead["name"] for lead in resp.json()] == ["100% Sure"]


@pytest.mark.asyncio
async def test_list_leads_rejects_inverted_date_range(client):
    resp = await client.get("/api/v1/leads/", params={"from": "2025-02-01", "to": "2025-01-01"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_lead_fields_without_stage_logs_nothing(client, db):
    created = (await client.post("/api/v1/leads/", json={"name": "Ken", "phone": "+911"})).json()

    resp = await client.put(f"/api/v1/leads/{created['id']}", json={"phone": "+912", "source": "Webinar"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["phone"] == "+912"
    assert data["source"] == "Webinar"
    assert data["name"] == "Ken"

    count = (await db.execute(select(func.count(Activity.id)))).scalar()
    assert count == 0


@pytest.mark.asyncio
async def test_update_lead_rejects_null_name(client):
    created = (await client.post("/api/v1/leads/", json={"name": "Ken"})).json()
    resp = await client.put(f"/api/v1/leads/{created['id']}", json={"name": None})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_lead_rejects_blank_name_and_strips(client):
    created = (await client.post("/api/v1/leads/", json={"name": "Ken"})).json()

    resp = await client.put(f"/api/v1/leads/{created['id']}", json={"name": "   "})
    assert resp.status_code == 400
    assert "name" in resp.json()["fields"]
    assert (await client.get(f"/api/v1/leads/{created['id']}")).json()["name"] == "Ken"

    resp = await client.put(f"/api/v1/leads/{created['id']}", json={"name": "  Kenneth  "})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Kenneth"


@pytest.mark.asyncio
async def test_update_missing_lead_is_404(client):
    resp = await client.put("/api/v1/leads/00000000-0000-0000-0000-000000000000", json={"stage": "Prospect"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_lead_cascades(client, db):
    created = (await client.post("/api/v1/leads/", json={"name": "Gone"})).json()
    lead_id = created["id"]

    await client.post("/api/v1/activities/", json={"lead_id": lead_id, "type": "Note", "details": {"text": "hi"}})
    await client.put(f"/api/v1/leads/{lead_id}", json={"stage": "Prospect"})
    await client.post("/api/v1/follow-ups/", json={"lead_id": lead_id, "follow_up_date": "2025-03-01T10:00:00"})

    resp = await client.delete(f"/api/v1/leads/{lead_id}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Lead deleted successfully"}

    assert (await client.get(f"/api/v1/leads/{lead_id}")).status_code == 404
    assert (await db.execute(select(func.count(Activity.id)))).scalar() == 0
    assert (await db.execute(select(func.count(FollowUp.id)))).scalar() == 0


@pytest.mark.asyncio
async def test_delete_missing_lead_is_404(client):
    resp = await client.delete("/api/v1/leads/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Lead not found"
