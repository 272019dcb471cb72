"""Pydantic schemas for Leads."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from crm.models.lead import LeadStage


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LeadCreate(BaseModel):
    """Schema for creating a lead."""
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    source: Optional[str] = Field(None, max_length=255)
    stage: LeadStage = LeadStage.LEAD

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value.strip()

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, value):
        return _blank_to_none(value)

    @field_validator("stage", mode="before")
    @classmethod
    def default_stage(cls, value):
        # Omitted, null or empty stage means a brand-new lead
        if value is None or (isinstance(value, str) and not value.strip()):
            return LeadStage.LEAD
        return value


class LeadUpdate(BaseModel):
    """Partial update; only the fields present in the request are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    source: Optional[str] = Field(None, max_length=255)
    stage: Optional[LeadStage] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, value):
        return _blank_to_none(value)

    @field_validator("name", "stage")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("name must not be empty")
        return value.strip() if value is not None else value


class LeadOut(BaseModel):
    """Schema for returning lead details."""
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    stage: LeadStage
    created_at: datetime

    class Config:
        from_attributes = True


class LeadSummary(BaseModel):
    """Lead fields embedded in follow-up listings."""
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    stage: LeadStage

    class Config:
        from_attributes = True


class DeleteResponse(BaseModel):
    message: str
