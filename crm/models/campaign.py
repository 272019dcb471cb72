"""Local record of a WhatsApp broadcast campaign created on Gallabox."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID, JSONB
from crm.core.database import Base


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    filters = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    gallabox_campaign_id = Column(String(255), nullable=True)  # provider's id
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
