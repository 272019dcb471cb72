"""Activity log: append, list and correct the events recorded against a lead."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import pydantic
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.errors import NotFoundError, ValidationError, store_error_from
from crm.models.activity import Activity
from crm.schemas.activity_details import parse_activity_details
from crm.services.leads import get_lead

logger = logging.getLogger(__name__)


def _check_details(activity_type: str, details: Dict[str, Any]) -> None:
    """Reject payloads that do not fit the shape of a known activity type."""
    try:
        parse_activity_details(activity_type, details)
    except pydantic.ValidationError as e:
        fields = {}
        for err in e.errors():
            key = ".".join(["details", *(str(p) for p in err["loc"])])
            fields.setdefault(key, []).append(err["msg"])
        raise ValidationError(f"Invalid details for activity type '{activity_type}'", fields) from e


async def append_activity(
    db: AsyncSession,
    lead_id: UUID,
    activity_type: str,
    details: Optional[Dict[str, Any]] = None,
) -> Activity:
    """Append an activity to an existing lead. ``details`` defaults to ``{}``."""
    details = details or {}
    _check_details(activity_type, details)
    await get_lead(db, lead_id)

    activity = Activity(lead_id=lead_id, type=activity_type, details=details)
    db.add(activity)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "append activity") from e
    await db.refresh(activity)

    logger.info("Activity %s logged for lead %s: %s", activity.id, lead_id, activity_type)
    return activity


async def list_activities_for_lead(db: AsyncSession, lead_id: UUID) -> List[Activity]:
    """Activities of one lead, newest first."""
    await get_lead(db, lead_id)
    result = await db.execute(
        select(Activity)
        .where(Activity.lead_id == lead_id)
        .order_by(Activity.created_at.desc())
    )
    return list(result.scalars().all())


async def get_activity(db: AsyncSession, activity_id: UUID) -> Activity:
    result = await db.execute(select(Activity).where(Activity.id == activity_id))
    activity = result.scalar_one_or_none()
    if activity is None:
        raise NotFoundError("Activity not found", {"activity_id": str(activity_id)})
    return activity


async def update_activity(db: AsyncSession, activity_id: UUID, changes: Dict[str, Any]) -> Activity:
    """Correct an activity's type and/or details."""
    activity = await get_activity(db, activity_id)
    if not changes:
        return activity

    new_type = changes.get("type", activity.type)
    new_details = changes.get("details", activity.details)
    _check_details(new_type, new_details)

    activity.type = new_type
    activity.details = new_details
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "update activity") from e
    await db.refresh(activity)

    logger.info("Activity %s corrected (%s)", activity_id, ", ".join(sorted(changes)))
    return activity


async def delete_activity(db: AsyncSession, activity_id: UUID) -> None:
    activity = await get_activity(db, activity_id)
    try:
        await db.delete(activity)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "delete activity") from e
    logger.info("Activity %s deleted", activity_id)
