"""Inbound webhooks: Google Forms lead capture and Gallabox events.

Google Forms submissions are deduplicated by email. Gallabox events are
matched to a lead by phone and logged; they are never rejected, so the
provider has nothing to retry.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import pydantic
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.errors import ValidationError, store_error_from
from crm.models.activity import Activity, ActivityType
from crm.models.lead import Lead, LeadStage
from crm.schemas.lead import LeadCreate
from crm.services.leads import find_lead_by_phone

logger = logging.getLogger(__name__)

FORM_SOURCE = "Google Forms"

# Google Forms question titles we accept for each field (compared lower-cased)
EMAIL_KEYS = ("email", "your email", "e-mail", "mail")
NAME_KEYS = ("name", "your name", "full name")
PHONE_KEYS = ("whatsapp", "your whatsapp number", "phone", "mobile")


def _coalesce_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        # Google Forms sends single answers as one-element lists
        value = value[0] if value else ""
    return value.strip() if isinstance(value, str) else str(value)


def extract_form_fields(payload: Dict[str, Any]) -> Dict[str, str]:
    """Pull email/name/whatsapp out of a form payload with arbitrary key casing."""
    lookup = {str(k).strip().lower(): v for k, v in payload.items()}

    def first(keys) -> str:
        for key in keys:
            value = _coalesce_string(lookup.get(key))
            if value:
                return value
        return ""

    return {
        "email": first(EMAIL_KEYS),
        "name": first(NAME_KEYS),
        "whatsapp": first(PHONE_KEYS),
    }


async def register_form_submission(db: AsyncSession, payload: Dict[str, Any]) -> Tuple[Lead, bool]:
    """Create a lead from a form submission unless one already has that email.

    Returns ``(lead, created)``. A new lead and its ``Form Submission``
    activity are committed together.
    """
    fields = extract_form_fields(payload)
    missing = [key for key, value in fields.items() if not value]
    if missing:
        logger.error("[google-forms] Missing required fields %s", missing)
        raise ValidationError(
            "Missing required fields",
            {key: ["field required"] for key in missing},
            {"received": fields},
        )

    try:
        data = LeadCreate(
            name=fields["name"],
            email=fields["email"],
            phone=fields["whatsapp"],
            source=FORM_SOURCE,
            stage=LeadStage.LEAD,
        )
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Invalid form submission",
            {".".join(str(p) for p in err["loc"]): [err["msg"]] for err in e.errors()},
            {"received": fields},
        ) from e

    result = await db.execute(
        select(Lead).where(func.lower(Lead.email) == data.email.lower()).limit(1)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        logger.info("[google-forms] Lead exists for %s -> %s", data.email, existing.id)
        return existing, False

    lead = Lead(name=data.name, email=data.email, phone=data.phone, source=data.source, stage=data.stage)
    db.add(lead)
    try:
        await db.flush()
        db.add(Activity(
            lead_id=lead.id,
            type=ActivityType.FORM_SUBMISSION.value,
            details={"source": FORM_SOURCE},
        ))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error_from(e, "create lead from form submission") from e
    await db.refresh(lead)

    logger.info("[google-forms] Lead created %s for %s", lead.id, data.email)
    return lead, True


def extract_event_phone(payload: Dict[str, Any]) -> Optional[str]:
    """Phone number of a Gallabox event: ``to``, ``from``, ``data.phone`` or ``payload.phone``."""
    candidates = [payload.get("to"), payload.get("from")]
    for nested in ("data", "payload"):
        inner = payload.get(nested)
        if isinstance(inner, dict):
            candidates.append(inner.get("phone"))
    for value in candidates:
        if value:
            return str(value)
    return None


async def record_gallabox_event(db: AsyncSession, payload: Dict[str, Any]) -> Optional[Activity]:
    """Log a provider event against the lead with a matching phone number.

    Returns the activity, or None when no lead matched or logging failed.
    """
    phone = extract_event_phone(payload)
    if not phone:
        logger.info("[gallabox] Event without a phone number; nothing to match")
        return None

    try:
        lead = await find_lead_by_phone(db, phone)
        if lead is None:
            logger.info("[gallabox] No lead matches %s", phone)
            return None
        activity_type = ActivityType.WA_INBOUND if payload.get("direction") == "inbound" else ActivityType.WA_EVENT
        activity = Activity(lead_id=lead.id, type=activity_type.value, details=payload)
        db.add(activity)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("[gallabox] Failed to log event for %s: %s", phone, e)
        return None

    logger.info("[gallabox] %s logged for lead %s", activity.type, lead.id)
    return activity
