from typing import Optional

from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheService
from app.core.database import get_db
from app.core.destination_catalogue import DEFAULT_DESTINATION_CATALOGUE
from app.repositories.automation_log_repository import AutomationLogRepository
from app.repositories.lead_repository import LeadRepository
from app.repositories.lead_source_repository import LeadSourceRepository
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.services.automation_service import AutomationActionService, AutomationNotifier
from app.services.condition_evaluator import ConditionEvaluator
from app.services.lead_capture_service import LeadCaptureService
from app.services.lead_scoring import LeadScoringEngine
from app.services.lead_update_service import LeadUpdateService
from app.services.score_service import ScoreService
from app.services.scoring_rule_service import ScoringRuleService


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


def get_redis_client(request: Request) -> Optional[Redis]:
    """The app-wide Redis client opened at startup, or ``None`` without one.

    Connection failures surface per command and ``CacheService`` treats
    them as cache misses.
    """
    return getattr(request.app.state, "redis", None)


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the shared Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(db: AsyncSession = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db)


async def get_source_repo(db: AsyncSession = Depends(get_db)) -> LeadSourceRepository:
    return LeadSourceRepository(db)


async def get_scoring_rule_repo(
    db: AsyncSession = Depends(get_db),
) -> ScoringRuleRepository:
    return ScoringRuleRepository(db)


async def get_automation_log_repo(
    db: AsyncSession = Depends(get_db),
) -> AutomationLogRepository:
    return AutomationLogRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


def get_condition_evaluator(request: Request) -> ConditionEvaluator:
    """Evaluator bound to the destination catalogue loaded at startup."""
    catalogue = getattr(
        request.app.state, "destination_catalogue", DEFAULT_DESTINATION_CATALOGUE
    )
    return ConditionEvaluator(catalogue=catalogue)


async def get_scoring_engine(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    scoring_rule_repo: ScoringRuleRepository = Depends(get_scoring_rule_repo),
    cache: CacheService = Depends(get_cache_service),
    evaluator: ConditionEvaluator = Depends(get_condition_evaluator),
) -> LeadScoringEngine:
    return LeadScoringEngine(
        lead_repo=lead_repo,
        scoring_rule_repo=scoring_rule_repo,
        cache=cache,
        evaluator=evaluator,
    )


def get_automation_notifier() -> AutomationNotifier:
    return AutomationNotifier()


async def get_lead_capture_service(
    scoring_engine: LeadScoringEngine = Depends(get_scoring_engine),
    notifier: AutomationNotifier = Depends(get_automation_notifier),
) -> LeadCaptureService:
    """Build a :class:`LeadCaptureService` with injected dependencies."""
    return LeadCaptureService(scoring_engine=scoring_engine, notifier=notifier)


async def get_lead_update_service(
    scoring_engine: LeadScoringEngine = Depends(get_scoring_engine),
) -> LeadUpdateService:
    """Build a :class:`LeadUpdateService` with injected dependencies."""
    return LeadUpdateService(scoring_engine=scoring_engine)


async def get_score_service(
    scoring_engine: LeadScoringEngine = Depends(get_scoring_engine),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> ScoreService:
    return ScoreService(scoring_engine=scoring_engine, lead_repo=lead_repo)


async def get_scoring_rule_service(
    rule_repo: ScoringRuleRepository = Depends(get_scoring_rule_repo),
    cache: CacheService = Depends(get_cache_service),
) -> ScoringRuleService:
    return ScoringRuleService(rule_repo=rule_repo, cache=cache)


async def get_automation_action_service(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    log_repo: AutomationLogRepository = Depends(get_automation_log_repo),
) -> AutomationActionService:
    return AutomationActionService(lead_repo=lead_repo, log_repo=log_repo)
