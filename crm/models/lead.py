"""Lead model."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from crm.core.database import Base


class LeadStage(str, enum.Enum):
    """Pipeline stage of a lead."""
    LEAD = "Lead"
    PROSPECT = "Prospect"
    ENROLLED = "Enrolled"
    REJECTED = "Rejected"
    NEXT_COHORT = "Next Cohort"


class Lead(Base):
    """Lead model."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True, index=True)
    source = Column(String(255), nullable=True)
    # Stored by value ("Next Cohort"), not by member name
    stage = Column(
        Enum(
            LeadStage,
            name="lead_stage",
            values_callable=lambda stages: [s.value for s in stages],
            validate_strings=True,
        ),
        nullable=False,
        default=LeadStage.LEAD,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships (rows are removed by ON DELETE CASCADE)
    activities = relationship(
        "Activity", back_populates="lead", cascade="all, delete-orphan", passive_deletes=True
    )
    follow_ups = relationship(
        "FollowUp", back_populates="lead", cascade="all, delete-orphan", passive_deletes=True
    )
