from app.models.base import Base
from app.models.lead import Lead
from app.models.lead_source import LeadSourceDetailed
from app.models.scoring_rule import LeadScoringRule
from app.models.automation_log import AutomationLog

__all__ = [
    "Base",
    "Lead",
    "LeadSourceDetailed",
    "LeadScoringRule",
    "AutomationLog",
]
