"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from app.schemas.common import (
    LeadPriority as LeadPriority,
    TriggerType as TriggerType,
    AutomationTrigger as AutomationTrigger,
    ConditionType as ConditionType,
    RuleStatus as RuleStatus,
    SuccessResponse as SuccessResponse,
)

# Lead schemas
from app.schemas.lead import (
    LeadCreate as LeadCreate,
    LeadPatch as LeadPatch,
    LeadOut as LeadOut,
    LeadCreateResponse as LeadCreateResponse,
    LeadUpdateResponse as LeadUpdateResponse,
    LeadListResponse as LeadListResponse,
    CalculateScoreRequest as CalculateScoreRequest,
    CalculateScoreResponse as CalculateScoreResponse,
    ScoreSummaryResponse as ScoreSummaryResponse,
)

# Scoring-rule schemas
from app.schemas.scoring_rule import (
    ScoringRuleCreate as ScoringRuleCreate,
    ScoringRuleUpdate as ScoringRuleUpdate,
    ScoringRuleOut as ScoringRuleOut,
    ScoringRuleListResponse as ScoringRuleListResponse,
)

# Automation schemas
from app.schemas.automation import (
    AutomationActionRequest as AutomationActionRequest,
    AutomationActionResponse as AutomationActionResponse,
    AutomationLogEntry as AutomationLogEntry,
    AutomationLogResponse as AutomationLogResponse,
)
