"""Pydantic schemas for Follow-ups."""

from datetime import datetime, timezone
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, field_validator
from crm.schemas.lead import LeadSummary


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class FollowUpCreate(BaseModel):
    lead_id: UUID
    follow_up_date: datetime
    notes: Optional[str] = None

    @field_validator("follow_up_date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class FollowUpUpdate(BaseModel):
    """Reschedule, edit notes or mark complete."""
    id: UUID
    follow_up_date: Optional[datetime] = None
    notes: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("follow_up_date", "completed")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return to_naive_utc(value) if isinstance(value, datetime) else value


class FollowUpOut(BaseModel):
    id: UUID
    lead_id: UUID
    follow_up_date: datetime
    notes: str
    completed: bool
    created_at: datetime

    class Config:
        from_attributes = True


class FollowUpWithLead(FollowUpOut):
    lead: Optional[LeadSummary] = None
