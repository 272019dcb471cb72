"""Follow-up scheduling."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crm.core.errors import NotFoundError, store_error_from
from crm.models.follow_up import FollowUp
from crm.services.leads import get_lead

logger = logging.getLogger(__name__)


async def list_pending_follow_ups(db: AsyncSession) -> List[FollowUp]:
    """Incomplete follow-ups, soonest first, with their lead loaded."""
    result = await db.execute(
        select(FollowUp)
        .options(selectinload(FollowUp.lead))
        .where(FollowUp.completed.is_(False))
        .order_by(FollowUp.follow_up_date.asc())
    )
    return list(result.scalars().all())


async def create_follow_up(
    db: AsyncSession,
    lead_id: UUID,
    follow_up_date: datetime,
    notes: Optional[str] = None,
) -> FollowUp:
    await get_lead(db, lead_id)

    follow_up = FollowUp(
        lead_id=lead_id,
        follow_up_date=follow_up_date,
        notes=notes or "",
        completed=False,
    )
    db.add(follow_up)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "create follow-up") from e
    await db.refresh(follow_up)

    logger.info("Follow-up %s scheduled for lead %s at %s", follow_up.id, lead_id, follow_up_date.isoformat())
    return follow_up


async def update_follow_up(db: AsyncSession, follow_up_id: UUID, changes: Dict[str, Any]) -> FollowUp:
    """Reschedule, edit notes, or mark a follow-up complete."""
    result = await db.execute(select(FollowUp).where(FollowUp.id == follow_up_id))
    follow_up = result.scalar_one_or_none()
    if follow_up is None:
        raise NotFoundError("Follow-up not found", {"follow_up_id": str(follow_up_id)})

    for key, value in changes.items():
        if key == "notes" and value is None:
            value = ""
        setattr(follow_up, key, value)

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "update follow-up") from e
    await db.refresh(follow_up)

    logger.info("Follow-up %s updated (%s)", follow_up_id, ", ".join(sorted(changes)) or "no changes")
    return follow_up
