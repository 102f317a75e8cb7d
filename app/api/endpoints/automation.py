from fastapi import APIRouter, Depends, Query

from app.schemas.automation import (
    AutomationActionRequest,
    AutomationActionResponse,
    AutomationLogResponse,
)
from app.services.automation_service import AutomationActionService
from app.api.deps import get_automation_action_service

router = APIRouter(prefix="/lead-scoring/automation-actions", tags=["Automation"])


@router.post("", response_model=AutomationActionResponse)
async def trigger_automation_actions(
    body: AutomationActionRequest,
    service: AutomationActionService = Depends(get_automation_action_service),
) -> AutomationActionResponse:
    """Run the priority-specific automation actions for a lead."""
    result = await service.trigger(body.lead_id, body.priority, body.score)
    return AutomationActionResponse(**result)


@router.get("", response_model=AutomationLogResponse)
async def automation_log(
    lead_id: int = Query(..., description="Lead to fetch the log for"),
    service: AutomationActionService = Depends(get_automation_action_service),
) -> AutomationLogResponse:
    """The 50 most recent automation log entries, newest first."""
    entries = await service.get_log(lead_id)
    return AutomationLogResponse(lead_id=lead_id, automation_log=entries)
