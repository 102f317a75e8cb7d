"""Scoring-rule administration schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import (
    AutomationTrigger,
    ConditionType,
    RuleStatus,
    SuccessResponse,
)


class ScoringRuleCreate(BaseModel):
    scoring_criteria_name: str = Field(..., min_length=1, max_length=255)
    field_checked: str = Field(..., min_length=1, max_length=100)
    condition_type: ConditionType
    condition_value: str = Field(default="", max_length=255)
    score_value: int
    lead_type: str = ""
    automation_trigger: AutomationTrigger = AutomationTrigger.ON_LEAD_CREATE
    priority_range_hot: int = 40
    priority_range_warm_min: int = 25
    priority_range_warm_max: Optional[int] = None
    priority_range_cold_max: Optional[int] = None
    status: RuleStatus = RuleStatus.ACTIVE
    notes: str = ""
    created_by: str = "System"


class ScoringRuleUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    scoring_criteria_name: Optional[str] = Field(default=None, min_length=1)
    field_checked: Optional[str] = Field(default=None, min_length=1)
    condition_type: Optional[ConditionType] = None
    condition_value: Optional[str] = Field(default=None, max_length=255)
    score_value: Optional[int] = None
    lead_type: Optional[str] = None
    automation_trigger: Optional[AutomationTrigger] = None
    priority_range_hot: Optional[int] = None
    priority_range_warm_min: Optional[int] = None
    priority_range_warm_max: Optional[int] = None
    priority_range_cold_max: Optional[int] = None
    status: Optional[RuleStatus] = None
    notes: Optional[str] = None


class ScoringRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scoring_criteria_name: str
    field_checked: str
    condition_type: str
    condition_value: Optional[str] = ""
    score_value: int
    lead_type: Optional[str] = ""
    automation_trigger: str
    priority_range_hot: Optional[int] = None
    priority_range_warm_min: Optional[int] = None
    priority_range_warm_max: Optional[int] = None
    priority_range_cold_max: Optional[int] = None
    status: str
    notes: Optional[str] = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScoringRuleListResponse(BaseModel):
    scoring_rules: List[ScoringRuleOut]


class ScoringRuleResponse(SuccessResponse):
    scoring_rule: ScoringRuleOut
    message: str


class ScoringRuleDeleteResponse(SuccessResponse):
    message: str = "Scoring rule deleted successfully"
