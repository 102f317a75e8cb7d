from sqlalchemy import Column, String, Integer, DateTime
from app.models.base import Base
from sqlalchemy.sql import func


class LeadSourceDetailed(Base):
    """Marketing source a lead is attributed to through its UTM tags."""

    __tablename__ = "lead_source_detailed"
    id = Column(Integer, primary_key=True, autoincrement=True)
    source_name = Column(String(255), nullable=False)
    utm_source = Column(String(255), server_default="")
    utm_medium = Column(String(255), server_default="")
    utm_campaign = Column(String(255), server_default="")
    status = Column(String(20), nullable=False, server_default="Active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
