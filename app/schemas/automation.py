from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import LeadPriority, SuccessResponse


class AutomationActionRequest(BaseModel):
    """Body POSTed by the automation notifier."""

    lead_id: int
    priority: LeadPriority
    score: Optional[int] = None


class AutomationActionResponse(SuccessResponse):
    lead_id: int
    lead_name: Optional[str] = None
    priority: LeadPriority
    score: Optional[int] = None
    actions_triggered: List[str]
    automation_log: List[Dict[str, Any]]
    message: str


class AutomationLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: Optional[int] = None
    action_type: str
    status: str
    message: Optional[str] = None
    priority: Optional[str] = None
    details: Optional[Dict[str, Any]] = Field(
        default=None, serialization_alias="metadata"
    )
    created_at: Optional[datetime] = None


class AutomationLogResponse(BaseModel):
    lead_id: int
    automation_log: List[AutomationLogEntry]
