from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.models.base import Base
from sqlalchemy.sql import func


class AutomationLog(Base):
    """One automation action queued, scheduled or completed for a lead."""

    __tablename__ = "automation_log"
    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"))
    action_type = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False)
    message = Column(Text)
    priority = Column(String(20), server_default="medium")
    # ``metadata`` is reserved on declarative classes
    details = Column("metadata", JSONB)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="automation_logs")

    __table_args__ = (
        Index("idx_automation_log_lead", "lead_id", created_at.desc()),
    )
