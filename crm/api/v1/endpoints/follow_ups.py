"""Follow-up endpoints.

- GET  /api/v1/follow-ups/  → incomplete follow-ups, soonest first, with their lead
- POST /api/v1/follow-ups/  → schedule a follow-up
- PUT  /api/v1/follow-ups/  → reschedule, edit notes or mark complete (id in body)
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.schemas.follow_up import FollowUpCreate, FollowUpOut, FollowUpUpdate, FollowUpWithLead
from crm.services import follow_ups as follow_up_service

router = APIRouter()


@router.get("/", response_model=List[FollowUpWithLead])
async def list_follow_ups(db: AsyncSession = Depends(get_db)):
    return await follow_up_service.list_pending_follow_ups(db)


@router.post("/", response_model=FollowUpOut, status_code=201)
async def create_follow_up(body: FollowUpCreate, db: AsyncSession = Depends(get_db)):
    return await follow_up_service.create_follow_up(db, body.lead_id, body.follow_up_date, body.notes)


@router.put("/", response_model=FollowUpOut)
async def update_follow_up(body: FollowUpUpdate, db: AsyncSession = Depends(get_db)):
    changes = body.model_dump(exclude_unset=True, exclude={"id"})
    return await follow_up_service.update_follow_up(db, body.id, changes)
