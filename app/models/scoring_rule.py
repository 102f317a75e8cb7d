from sqlalchemy import Column, String, Integer, DateTime, Text, Index, CheckConstraint
from app.models.base import Base
from sqlalchemy.sql import func
from sqlalchemy import text


class LeadScoringRule(Base):
    """Admin-configured scoring rule.

    A rule checks one lead field (``field_checked``) with a typed
    condition and, when it matches, adds ``score_value`` to the lead's
    score.  Rules apply to one ``lead_type`` or, when that is empty, to
    every type; ``automation_trigger`` restricts them to create events,
    update events or both.

    The ``priority_range_*`` columns are stored on every row but behave
    as rule-set wide settings: the engine reads them from the highest
    scoring active rule of the set (see ``RuleSet``).
    """

    __tablename__ = "lead_scoring_master"
    id = Column(Integer, primary_key=True, autoincrement=True)
    scoring_criteria_name = Column(String(255), nullable=False)
    field_checked = Column(String(100), nullable=False)
    condition_type = Column(String(50), nullable=False)
    condition_value = Column(String(255), server_default="")
    score_value = Column(Integer, nullable=False, server_default=text("0"))
    lead_type = Column(String(50), server_default="")
    automation_trigger = Column(
        String(50), nullable=False, server_default="On Lead Create"
    )
    priority_range_hot = Column(Integer, server_default=text("40"))
    priority_range_warm_min = Column(Integer, server_default=text("25"))
    priority_range_warm_max = Column(Integer, server_default=text("39"))
    priority_range_cold_max = Column(Integer, server_default=text("24"))
    status = Column(String(20), nullable=False, server_default="Active")
    notes = Column(Text, server_default="")
    created_by = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_scoring_rules_active", "status", "lead_type"),
        CheckConstraint(
            "automation_trigger IN ('On Lead Create', 'On Lead Update', 'Both')",
            name="ck_scoring_rule_trigger",
        ),
        CheckConstraint(
            "status IN ('Active', 'Inactive')",
            name="ck_scoring_rule_status",
        ),
    )
