"""Typed views over the schema-less ``Activity.details`` payload.

Each well-known activity type has its own pydantic model; anything else is
kept as an opaque mapping. Extra keys are allowed on every variant so that
corrections made through the API never lose data.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from crm.models.activity import ActivityType
from crm.models.lead import LeadStage


class StageChangeDetails(BaseModel):
    """Payload of a ``Lead Stage Changed`` activity."""
    model_config = ConfigDict(extra="allow")

    from_stage: LeadStage
    to_stage: LeadStage
    changed_at: Optional[datetime] = None
    message: Optional[str] = None


class FormSubmissionDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    source: Optional[str] = None


class WhatsAppDetails(BaseModel):
    """Provider payload for WA Message / WA Inbound / WA Event activities."""
    model_config = ConfigDict(extra="allow")


class OpaqueDetails(BaseModel):
    """Fallback for activity types without a known shape."""
    data: Dict[str, Any] = Field(default_factory=dict)


ActivityDetails = Union[StageChangeDetails, FormSubmissionDetails, WhatsAppDetails, OpaqueDetails]

_VARIANTS = {
    ActivityType.STAGE_CHANGED.value: StageChangeDetails,
    ActivityType.FORM_SUBMISSION.value: FormSubmissionDetails,
    ActivityType.WA_MESSAGE.value: WhatsAppDetails,
    ActivityType.WA_INBOUND.value: WhatsAppDetails,
    ActivityType.WA_EVENT.value: WhatsAppDetails,
}


def parse_activity_details(activity_type: str, details: Optional[Dict[str, Any]]) -> ActivityDetails:
    """Return the typed variant for ``activity_type``.

    Raises pydantic.ValidationError when a known type carries a payload of
    the wrong shape.
    """
    variant = _VARIANTS.get(activity_type)
    if variant is None:
        return OpaqueDetails(data=details or {})
    return variant.model_validate(details or {})


def stage_change_details(from_stage: LeadStage, to_stage: LeadStage, changed_at: datetime) -> Dict[str, Any]:
    """Build the JSON payload recorded for a stage transition."""
    details = StageChangeDetails(
        from_stage=from_stage,
        to_stage=to_stage,
        changed_at=changed_at,
        message=f"Lead stage changed from {from_stage.value} to {to_stage.value}",
    )
    return details.model_dump(mode="json")
