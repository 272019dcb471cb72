"""Gallabox and Google Forms webhook handlers.

Thin HTTP layer; all business logic lives in crm.services.intake.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.schemas.lead import LeadOut
from crm.services.intake import record_gallabox_event, register_form_submission

router = APIRouter()
logger = logging.getLogger(__name__)


async def _json_object(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


@router.post("/gallabox")
async def gallabox_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Log a Gallabox event against the matching lead.

    Always acknowledges with ``{"ok": true}``: an event that cannot be
    matched or stored is logged and dropped, never retried by the provider.
    """
    payload = await _json_object(request)
    logger.info("Gallabox event: %s | direction=%s", payload.get("event") or payload.get("type"), payload.get("direction"))
    try:
        await record_gallabox_event(db, payload)
    except Exception as e:
        logger.error("Gallabox webhook error: %s", e)
    return {"ok": True}


@router.post("/google-forms")
async def google_forms_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Create a lead from a Google Forms submission, deduplicated by email."""
    payload = await _json_object(request)
    logger.info("Google Forms submission with keys: %s", sorted(payload))
    lead, created = await register_form_submission(db, payload)
    if not created:
        return {"message": "Lead already exists", "lead_id": str(lead.id)}

    return JSONResponse(
        status_code=201,
        content={
            "message": "Lead created",
            "lead_id": str(lead.id),
            "lead": LeadOut.model_validate(lead).model_dump(mode="json"),
        },
    )


@router.get("/google-forms")
async def google_forms_health():
    return {"status": "ok", "at": datetime.utcnow().isoformat()}
