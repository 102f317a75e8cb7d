from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.schemas.common import RuleStatus
from app.schemas.scoring_rule import (
    ScoringRuleCreate,
    ScoringRuleDeleteResponse,
    ScoringRuleListResponse,
    ScoringRuleResponse,
    ScoringRuleUpdate,
)
from app.services.scoring_rule_service import ScoringRuleService
from app.api.deps import get_scoring_rule_service

router = APIRouter(prefix="/lead-scoring", tags=["Lead Scoring"])


@router.get("", response_model=ScoringRuleListResponse)
async def list_scoring_rules(
    status: RuleStatus = Query(RuleStatus.ACTIVE),
    lead_type: Optional[str] = Query(None),
    service: ScoringRuleService = Depends(get_scoring_rule_service),
) -> ScoringRuleListResponse:
    rules = await service.list_rules(status.value, lead_type)
    return ScoringRuleListResponse(scoring_rules=rules)


@router.post("", response_model=ScoringRuleResponse, status_code=201)
async def create_scoring_rule(
    payload: ScoringRuleCreate,
    service: ScoringRuleService = Depends(get_scoring_rule_service),
) -> ScoringRuleResponse:
    rule = await service.create_rule(payload)
    return ScoringRuleResponse(
        scoring_rule=rule, message="Scoring rule created successfully"
    )


@router.put("/{rule_id}", response_model=ScoringRuleResponse)
async def update_scoring_rule(
    rule_id: int,
    payload: ScoringRuleUpdate,
    service: ScoringRuleService = Depends(get_scoring_rule_service),
) -> ScoringRuleResponse:
    rule = await service.update_rule(rule_id, payload)
    return ScoringRuleResponse(
        scoring_rule=rule, message="Scoring rule updated successfully"
    )


@router.delete("/{rule_id}", response_model=ScoringRuleDeleteResponse)
async def delete_scoring_rule(
    rule_id: int,
    service: ScoringRuleService = Depends(get_scoring_rule_service),
) -> ScoringRuleDeleteResponse:
    """Soft delete: the rule is marked Inactive."""
    await service.delete_rule(rule_id)
    return ScoringRuleDeleteResponse()
