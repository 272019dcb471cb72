"""WhatsApp messaging workflows: send a message, create a campaign.

The provider call always comes first. Logging the sent message against a
lead afterwards is best effort: the message is already out, so a failure
there is logged and swallowed rather than reported as an error.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.errors import store_error_from
from crm.models.activity import Activity, ActivityType
from crm.models.campaign import Campaign
from crm.models.lead import Lead
from crm.services.gallabox import GallaboxClient
from crm.services.leads import find_lead_by_phone

logger = logging.getLogger(__name__)


def _as_details(provider_response: Any) -> Dict[str, Any]:
    if isinstance(provider_response, dict):
        return provider_response
    return {"response": provider_response}


async def _resolve_lead_id(db: AsyncSession, lead_id: Optional[UUID], phone: str) -> Optional[UUID]:
    if lead_id is not None:
        result = await db.execute(select(Lead.id).where(Lead.id == lead_id))
        return result.scalar_one_or_none()
    lead = await find_lead_by_phone(db, phone)
    return lead.id if lead else None


async def log_message_activity(
    db: AsyncSession,
    lead_id: Optional[UUID],
    to: str,
    provider_response: Any,
) -> Optional[UUID]:
    """Record a ``WA Message`` activity. Returns the lead it was logged against, if any."""
    try:
        target = await _resolve_lead_id(db, lead_id, to)
        if target is None:
            logger.info("WA message to %s sent; no matching lead to log it against", to)
            return None
        db.add(Activity(lead_id=target, type=ActivityType.WA_MESSAGE.value, details=_as_details(provider_response)))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("WA message to %s sent but activity logging failed: %s", to, e)
        return None

    logger.info("WA message to %s logged against lead %s", to, target)
    return target


async def send_whatsapp_message(
    db: AsyncSession,
    gallabox: GallaboxClient,
    to: str,
    message: Optional[str] = None,
    template: Optional[Dict[str, Any]] = None,
    lead_id: Optional[UUID] = None,
) -> Tuple[Any, Optional[UUID]]:
    """Relay a message through Gallabox, then log it against the lead."""
    provider_response = await gallabox.send_message(to=to, message=message, template=template)
    logged_lead_id = await log_message_activity(db, lead_id, to, provider_response)
    return provider_response, logged_lead_id


async def create_campaign(
    db: AsyncSession,
    gallabox: GallaboxClient,
    name: str,
    filters: Dict[str, Any],
    template: Optional[Dict[str, Any]] = None,
) -> Tuple[Campaign, Any]:
    """Create a broadcast on Gallabox and keep a local record of it."""
    provider_response = await gallabox.create_campaign(name=name, filters=filters, template=template)

    provider_id = provider_response.get("id") if isinstance(provider_response, dict) else None
    campaign = Campaign(
        name=name,
        filters=filters,
        gallabox_campaign_id=str(provider_id) if provider_id is not None else None,
    )
    db.add(campaign)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Gallabox campaign %s created but local record failed: %s", provider_id, e)
        raise store_error_from(e, "save campaign") from e
    await db.refresh(campaign)

    logger.info("Campaign %s created (gallabox id %s)", campaign.id, campaign.gallabox_campaign_id)
    return campaign, provider_response
