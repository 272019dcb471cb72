"""Lead store.

Creates, reads, filters, updates and deletes leads. Every stage change made
through ``update_lead`` appends a ``Lead Stage Changed`` activity in the same
transaction as the update itself.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.errors import ConflictError, NotFoundError, store_error_from
from crm.models.activity import Activity, ActivityType
from crm.models.lead import Lead, LeadStage
from crm.schemas.activity_details import stage_change_details
from crm.schemas.lead import LeadCreate

logger = logging.getLogger(__name__)


@dataclass
class LeadFilters:
    """Conjunctive filters for listing leads. ``None`` means unconstrained."""
    stage: Optional[LeadStage] = None
    name_contains: Optional[str] = None
    source_contains: Optional[str] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None


def _contains(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_stage_change_activity(lead_id: UUID, from_stage: LeadStage, to_stage: LeadStage) -> Activity:
    """The activity recorded when a lead moves from one stage to another."""
    return Activity(
        lead_id=lead_id,
        type=ActivityType.STAGE_CHANGED.value,
        details=stage_change_details(from_stage, to_stage, datetime.utcnow()),
    )


async def create_lead(db: AsyncSession, data: LeadCreate) -> Lead:
    lead = Lead(
        name=data.name,
        email=data.email,
        phone=data.phone,
        source=data.source,
        stage=data.stage,
    )
    db.add(lead)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "create lead") from e
    await db.refresh(lead)

    logger.info("Created lead %s: %s (%s)", lead.id, lead.name, lead.stage.value)
    return lead


async def get_lead(db: AsyncSession, lead_id: UUID) -> Lead:
    result = await db.execute(select(Lead).where(Lead.id == lead_id))
    lead = result.scalar_one_or_none()
    if lead is None:
        raise NotFoundError("Lead not found", {"lead_id": str(lead_id)})
    return lead


async def list_leads(db: AsyncSession, filters: LeadFilters) -> List[Lead]:
    """List leads newest first, applying every filter that is set."""
    query = select(Lead)

    if filters.stage is not None:
        query = query.where(Lead.stage == filters.stage)
    if filters.name_contains:
        query = query.where(Lead.name.ilike(_contains(filters.name_contains), escape="\\"))
    if filters.source_contains:
        query = query.where(Lead.source.ilike(_contains(filters.source_contains), escape="\\"))
    if filters.created_from is not None:
        query = query.where(Lead.created_at >= datetime.combine(filters.created_from, time.min))
    if filters.created_to is not None:
        query = query.where(Lead.created_at <= datetime.combine(filters.created_to, time.max))

    query = query.order_by(Lead.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_lead(db: AsyncSession, lead_id: UUID, changes: Dict[str, Any]) -> Lead:
    """Apply a partial update and record the stage transition, if any.

    The row is read under a lock and the write is conditional on the stage
    still being the one that was read, so two concurrent updates can never
    both log a transition from the same starting stage. The update and the
    activity commit together or not at all.
    """
    result = await db.execute(
        select(Lead)
        .where(Lead.id == lead_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    lead = result.scalar_one_or_none()
    if lead is None:
        raise NotFoundError("Lead not found", {"lead_id": str(lead_id)})

    if not changes:
        return lead

    previous_stage = lead.stage
    new_stage = changes.get("stage")
    stage_changed = new_stage is not None and LeadStage(new_stage) != previous_stage

    stmt = update(Lead).where(Lead.id == lead_id)
    if stage_changed:
        stmt = stmt.where(Lead.stage == previous_stage)

    try:
        swapped = await db.execute(stmt.values(**changes).execution_options(synchronize_session=False))
        if swapped.rowcount == 0:
            raise ConflictError(
                "Lead stage was changed by another request; reload and retry",
                {"lead_id": str(lead_id), "expected_stage": previous_stage.value},
            )
        if stage_changed:
            db.add(build_stage_change_activity(lead_id, previous_stage, LeadStage(new_stage)))
        await db.commit()
    except ConflictError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "update lead") from e

    await db.refresh(lead)

    if stage_changed:
        logger.info(
            "Lead %s stage changed: %s -> %s",
            lead_id,
            previous_stage.value,
            lead.stage.value,
        )
    else:
        logger.info("Updated lead %s fields: %s", lead_id, ", ".join(sorted(changes)))
    return lead


async def delete_lead(db: AsyncSession, lead_id: UUID) -> None:
    """Delete a lead; its activities and follow-ups go with it.

    Deleting an id that does not exist raises NotFoundError.
    """
    lead = await get_lead(db, lead_id)
    try:
        await db.delete(lead)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "delete lead") from e
    logger.info("Deleted lead %s", lead_id)


async def find_lead_by_phone(db: AsyncSession, phone: str) -> Optional[Lead]:
    """Best-effort match of a phone number to a lead (first match wins)."""
    if not phone:
        return None
    result = await db.execute(
        select(Lead).where(Lead.phone == phone).order_by(Lead.created_at.asc()).limit(1)
    )
    return result.scalar_one_or_none()
