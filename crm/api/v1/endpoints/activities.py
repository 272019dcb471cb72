"""Activity endpoints.

- POST   /api/v1/activities/      → append an activity to a lead
- PUT    /api/v1/activities/{id}  → correct type and/or details
- DELETE /api/v1/activities/{id}  → remove an activity
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.schemas.activity import ActivityCreate, ActivityOut, ActivityUpdate
from crm.services import activities as activity_service

router = APIRouter()


@router.post("/", response_model=ActivityOut, status_code=201)
async def create_activity(body: ActivityCreate, db: AsyncSession = Depends(get_db)):
    return await activity_service.append_activity(db, body.lead_id, body.type, body.details)


@router.put("/{activity_id}", response_model=ActivityOut)
async def update_activity(activity_id: UUID, body: ActivityUpdate, db: AsyncSession = Depends(get_db)):
    return await activity_service.update_activity(db, activity_id, body.model_dump(exclude_unset=True))


@router.delete("/{activity_id}")
async def delete_activity(activity_id: UUID, db: AsyncSession = Depends(get_db)):
    await activity_service.delete_activity(db, activity_id)
    return {"success": True}
