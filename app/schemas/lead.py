"""Lead-specific Pydantic schemas (create, update, scoring, responses)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from typing_extensions import Self

from app.schemas.common import LeadPriority, SuccessResponse, TriggerType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LeadCreate(BaseModel):
    """Inbound enquiry submitted by the website or a campaign landing page."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=50)
    number_of_travelers: Optional[int] = Field(default=None, ge=1)
    travel_dates: Optional[str] = None
    travel_date: Optional[date] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    custom_notes: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    lead_type: Optional[str] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    budget_per_person: Optional[Decimal] = Field(default=None, ge=0)


class LeadPatch(BaseModel):
    """Partial update for PATCH /api/leads/{lead_id}.

    Only the fields present in the request body are written.
    """

    status: Optional[str] = None
    assigned_employee_id: Optional[str] = None
    assigned_employee_name: Optional[str] = None
    custom_notes: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    destination: Optional[str] = None
    travel_dates: Optional[str] = None
    travel_date: Optional[date] = None
    number_of_travelers: Optional[int] = Field(default=None, ge=1)
    lead_type: Optional[str] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    budget_per_person: Optional[Decimal] = Field(default=None, ge=0)
    response_time_hours: Optional[int] = Field(default=None, ge=0)
    itinerary_created_hours: Optional[int] = Field(default=None, ge=0)


class CalculateScoreRequest(BaseModel):
    """Body for POST /api/leads/calculate-score.

    Either score a stored lead (``lead_id``, result persisted) or an
    unsaved ``lead_data`` payload (preview only).
    """

    lead_id: Optional[int] = None
    lead_data: Optional[Dict[str, Any]] = None
    trigger_type: TriggerType = TriggerType.ON_LEAD_CREATE

    @model_validator(mode="after")
    def require_lead_reference(self) -> Self:
        if self.lead_id is None and not self.lead_data:
            raise ValueError("Either lead_id or lead_data is required")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    number_of_travelers: Optional[int] = None
    travel_dates: Optional[str] = None
    travel_date: Optional[date] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    custom_notes: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    lead_source_id: Optional[int] = None
    lead_type: Optional[str] = None
    budget: Optional[Decimal] = None
    budget_per_person: Optional[Decimal] = None
    status: Optional[str] = None
    assigned_employee_id: Optional[str] = None
    assigned_employee_name: Optional[str] = None
    response_time_hours: Optional[int] = None
    itinerary_created_hours: Optional[int] = None
    lead_score: int = 0
    lead_priority: str = LeadPriority.COLD.value
    last_score_calculated: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UtmTracking(BaseModel):
    captured: bool
    matched_source_id: Optional[int] = None


class CreateScoring(BaseModel):
    score: int
    priority: LeadPriority
    auto_calculated: bool = True
    automation_triggered: bool = False


class UpdateScoring(BaseModel):
    score: int
    priority: LeadPriority
    auto_recalculated: bool = True


class LeadCreateResponse(BaseModel):
    """``scoring`` is ``null`` when automatic scoring did not run."""

    lead: LeadOut
    utm_tracking: UtmTracking
    scoring: Optional[CreateScoring] = None


class LeadUpdateResponse(BaseModel):
    lead: LeadOut
    scoring: Optional[UpdateScoring] = None


class LeadListResponse(BaseModel):
    leads: List[LeadOut]
    total: int
    limit: int
    offset: int


class MatchedRuleOut(BaseModel):
    rule_id: Optional[int] = None
    rule_name: str
    score_added: int
    field_checked: str
    field_value: Any = None


class CalculateScoreResponse(SuccessResponse):
    lead_id: Optional[int] = None
    total_score: int
    priority: LeadPriority
    matched_rules: List[MatchedRuleOut] = Field(default_factory=list)
    rules_evaluated: int
    calculated_at: datetime


class PriorityDistribution(BaseModel):
    priority: Optional[str]
    count: int
    avg_score: float
    max_score: int
    min_score: int


class TypeBreakdown(BaseModel):
    lead_type: Optional[str]
    priority: Optional[str]
    count: int


class TopLead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    lead_score: int
    lead_priority: str
    lead_type: Optional[str] = None


class ScoreSummaryResponse(BaseModel):
    score_distribution: List[PriorityDistribution]
    type_breakdown: List[TypeBreakdown]
    top_leads: List[TopLead]
