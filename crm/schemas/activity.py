"""Pydantic schemas for Activities."""

from datetime import datetime
from uuid import UUID
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


class ActivityCreate(BaseModel):
    lead_id: UUID
    type: str = Field(..., min_length=1, max_length=100)
    details: Optional[Dict[str, Any]] = None

    @field_validator("type")
    @classmethod
    def type_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("type must not be empty")
        return value.strip()


class ActivityUpdate(BaseModel):
    """Correction of an existing activity."""
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    details: Optional[Dict[str, Any]] = None

    @field_validator("type", "details")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class ActivityOut(BaseModel):
    id: UUID
    lead_id: UUID
    type: str
    details: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
