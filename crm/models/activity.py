"""Activity model: typed events logged against a lead."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from crm.core.database import Base


class ActivityType(str, enum.Enum):
    """Activity labels the application knows about.

    The column itself is free-form; these are the values the UI offers and
    the ones the application writes on its own.
    """
    CALL = "Call"
    EMAIL = "Email"
    MEETING = "Meeting"
    NOTE = "Note"
    STAGE_CHANGED = "Lead Stage Changed"
    WA_MESSAGE = "WA Message"
    WA_INBOUND = "WA Inbound"
    WA_EVENT = "WA Event"
    FORM_SUBMISSION = "Form Submission"


class Activity(Base):
    __tablename__ = "activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(100), nullable=False, index=True)
    details = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    lead = relationship("Lead", back_populates="activities")
