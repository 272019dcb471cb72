"""Lead endpoints.

- GET    /api/v1/leads/                 → list leads (query filters stage, name, source, from, to)
- POST   /api/v1/leads/                 → create a lead
- GET    /api/v1/leads/{id}             → one lead
- GET    /api/v1/leads/{id}/activities  → the lead's activity log, newest first
- PUT    /api/v1/leads/{id}             → partial update (logs stage transitions)
- DELETE /api/v1/leads/{id}             → delete a lead with its activities and follow-ups
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.errors import ValidationError
from crm.models.lead import LeadStage
from crm.schemas.activity import ActivityOut
from crm.schemas.lead import DeleteResponse, LeadCreate, LeadOut, LeadUpdate
from crm.services import activities as activity_service
from crm.services import leads as lead_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[LeadOut])
async def list_leads(
    stage: Optional[LeadStage] = Query(None, description="Exact pipeline stage"),
    name: Optional[str] = Query(None, description="Case-insensitive substring of the name"),
    source: Optional[str] = Query(None, description="Case-insensitive substring of the source"),
    created_from: Optional[date] = Query(None, alias="from", description="Created on or after (YYYY-MM-DD)"),
    created_to: Optional[date] = Query(None, alias="to", description="Created on or before (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """List leads newest first."""
    if created_from and created_to and created_from > created_to:
        raise ValidationError("'from' must not be after 'to'", {"from": ["must not be after 'to'"]})

    filters = lead_service.LeadFilters(
        stage=stage,
        name_contains=name,
        source_contains=source,
        created_from=created_from,
        created_to=created_to,
    )
    return await lead_service.list_leads(db, filters)


@router.post("/", response_model=LeadOut, status_code=201)
async def create_lead(body: LeadCreate, db: AsyncSession = Depends(get_db)):
    return await lead_service.create_lead(db, body)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(lead_id: UUID, db: AsyncSession = Depends(get_db)):
    return await lead_service.get_lead(db, lead_id)


@router.get("/{lead_id}/activities", response_model=List[ActivityOut])
async def list_lead_activities(lead_id: UUID, db: AsyncSession = Depends(get_db)):
    return await activity_service.list_activities_for_lead(db, lead_id)


@router.put("/{lead_id}", response_model=LeadOut)
async def update_lead(lead_id: UUID, body: LeadUpdate, db: AsyncSession = Depends(get_db)):
    """Apply the fields present in the body. A stage change is logged as an activity."""
    changes = body.model_dump(exclude_unset=True)
    return await lead_service.update_lead(db, lead_id, changes)


@router.delete("/{lead_id}", response_model=DeleteResponse)
async def delete_lead(lead_id: UUID, db: AsyncSession = Depends(get_db)):
    await lead_service.delete_lead(db, lead_id)
    return DeleteResponse(message="Lead deleted successfully")
