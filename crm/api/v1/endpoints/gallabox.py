"""Gallabox (WhatsApp) endpoints.

- POST /api/v1/gallabox/send-message → send a text or template message, log it on the lead
- POST /api/v1/gallabox/campaign     → create a broadcast campaign and keep a local record
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.deps import get_gallabox
from crm.core.errors import ValidationError
from crm.schemas.gallabox import (
    CampaignCreate,
    CampaignCreateResponse,
    CampaignOut,
    SendMessageRequest,
    SendMessageResponse,
)
from crm.services import messaging
from crm.services.gallabox import GallaboxClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/send-message", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    db: AsyncSession = Depends(get_db),
    gallabox: GallaboxClient = Depends(get_gallabox),
):
    """Relay a message through Gallabox.

    Returns the provider's raw response. The ``WA Message`` activity is
    logged against ``leadId`` or, when omitted, the lead whose phone matches
    ``to``. A logging failure does not turn a sent message into an error.
    """
    if not body.message and body.template is None:
        raise ValidationError("Either message or template is required", {"message": ["field required"]})

    template = body.template.model_dump(exclude_none=True) if body.template else None
    provider_response, lead_id = await messaging.send_whatsapp_message(
        db,
        gallabox,
        to=body.to,
        message=body.message,
        template=template,
        lead_id=body.lead_id,
    )
    return SendMessageResponse(provider_response=provider_response, lead_id=lead_id)


@router.post("/campaign", response_model=CampaignCreateResponse, status_code=201)
async def create_campaign(
    body: CampaignCreate,
    db: AsyncSession = Depends(get_db),
    gallabox: GallaboxClient = Depends(get_gallabox),
):
    template = body.template.model_dump() if body.template else None
    campaign, provider_response = await messaging.create_campaign(
        db,
        gallabox,
        name=body.name,
        filters=body.filters,
        template=template,
    )
    return CampaignCreateResponse(
        campaign=CampaignOut.model_validate(campaign),
        provider_response=provider_response,
    )
