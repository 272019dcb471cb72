"""Request/response schemas for the Gallabox (WhatsApp) endpoints."""

from datetime import datetime
from uuid import UUID
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class MessageTemplate(BaseModel):
    name: str = Field(..., min_length=1)
    language: str = "en"
    components: Optional[List[Any]] = None


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lead_id: Optional[UUID] = Field(None, alias="leadId")
    to: str = Field(..., min_length=1)
    message: Optional[str] = None
    template: Optional[MessageTemplate] = None


class SendMessageResponse(BaseModel):
    provider_response: Any
    lead_id: Optional[UUID] = None


class CampaignTemplate(BaseModel):
    name: str = Field(..., min_length=1)


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    filters: Dict[str, Any] = Field(default_factory=dict)
    template: Optional[CampaignTemplate] = None


class CampaignOut(BaseModel):
    id: UUID
    name: str
    filters: Dict[str, Any]
    gallabox_campaign_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CampaignCreateResponse(BaseModel):
    campaign: CampaignOut
    provider_response: Any
