from fastapi import APIRouter

from app.api.endpoints import automation, health, leads, scoring_rules

router = APIRouter(prefix="/api")

router.include_router(health.router)
router.include_router(leads.router)
# automation-actions is registered before /lead-scoring/{rule_id}
router.include_router(automation.router)
router.include_router(scoring_rules.router)
