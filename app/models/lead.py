from sqlalchemy import (
    Column,
    String,
    Numeric,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from app.models.base import Base
from sqlalchemy.sql import func
from sqlalchemy import text


class Lead(Base):
    """Inbound travel enquiry captured from the website or a campaign.

    Carries contact details, trip preferences (destination, dates, party
    size, budget) and UTM attribution.  ``lead_score``, ``lead_priority``
    and ``last_score_calculated`` are owned by the scoring engine and are
    recomputed on every create and update.
    """

    __tablename__ = "leads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    number_of_travelers = Column(Integer)
    travel_dates = Column(String(255))
    travel_date = Column(Date)
    source = Column(String(100))
    destination = Column(String(255))
    custom_notes = Column(Text)
    utm_source = Column(String(255), server_default="")
    utm_medium = Column(String(255), server_default="")
    utm_campaign = Column(String(255), server_default="")
    lead_source_id = Column(
        Integer, ForeignKey("lead_source_detailed.id", ondelete="SET NULL")
    )
    lead_type = Column(String(50))
    budget = Column(Numeric(12, 2))
    budget_per_person = Column(Numeric(12, 2))
    status = Column(String(50), nullable=False, server_default="New")
    assigned_employee_id = Column(String(100))
    assigned_employee_name = Column(String(255))
    response_time_hours = Column(Integer)
    itinerary_created_hours = Column(Integer)
    lead_score = Column(Integer, nullable=False, server_default=text("0"))
    lead_priority = Column(String(20), nullable=False, server_default="Cold")
    last_score_calculated = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    lead_source = relationship("LeadSourceDetailed")
    automation_logs = relationship(
        "AutomationLog", back_populates="lead", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_leads_score_priority", lead_score.desc(), "lead_priority"),
        Index("idx_leads_created_at", "created_at"),
        CheckConstraint(
            "lead_priority IN ('Hot', 'Warm', 'Cold')",
            name="ck_lead_priority",
        ),
    )
