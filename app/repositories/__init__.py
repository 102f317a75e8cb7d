"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from app.repositories.lead_repository import LeadRepository
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.repositories.automation_log_repository import AutomationLogRepository
from app.repositories.lead_source_repository import LeadSourceRepository

__all__ = [
    "LeadRepository",
    "ScoringRuleRepository",
    "AutomationLogRepository",
    "LeadSourceRepository",
]
