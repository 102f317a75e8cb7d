import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select, update

from app.models.scoring_rule import LeadScoringRule
from app.repositories.base import BaseRepository
from app.schemas.common import AutomationTrigger, RuleStatus

logger = logging.getLogger(__name__)


class ScoringRuleRepository(BaseRepository):
    """Encapsulates queries against the ``lead_scoring_master`` table."""

    async def get_active_rules(
        self, lead_type: str, trigger_type: str
    ) -> List[LeadScoringRule]:
        """Return the active rules eligible for a lead type and trigger.

        A rule is eligible when it targets *lead_type* or has no lead
        type, and when its trigger is *trigger_type* or ``Both``.  Rows
        are ordered by ``score_value`` descending, ties broken by id so
        the first row is deterministic.
        """
        result = await self._db.execute(
            select(LeadScoringRule)
            .where(
                LeadScoringRule.status == RuleStatus.ACTIVE.value,
                or_(
                    LeadScoringRule.lead_type == lead_type,
                    LeadScoringRule.lead_type.is_(None),
                    LeadScoringRule.lead_type == "",
                ),
                or_(
                    LeadScoringRule.automation_trigger == trigger_type,
                    LeadScoringRule.automation_trigger
                    == AutomationTrigger.BOTH.value,
                ),
            )
            .order_by(LeadScoringRule.score_value.desc(), LeadScoringRule.id.asc())
        )
        return list(result.scalars().all())

    async def list_rules(
        self, status: str, lead_type: Optional[str] = None
    ) -> List[LeadScoringRule]:
        """Admin listing, grouped by lead type, highest score first."""
        query = select(LeadScoringRule).where(LeadScoringRule.status == status)
        if lead_type:
            query = query.where(LeadScoringRule.lead_type == lead_type)
        result = await self._db.execute(
            query.order_by(
                LeadScoringRule.lead_type,
                LeadScoringRule.score_value.desc(),
                LeadScoringRule.scoring_criteria_name.asc(),
            )
        )
        return list(result.scalars().all())

    async def get_by_id(self, rule_id: int) -> Optional[LeadScoringRule]:
        result = await self._db.execute(
            select(LeadScoringRule).where(LeadScoringRule.id == rule_id)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> LeadScoringRule:
        return await self._insert(LeadScoringRule(**kwargs))

    async def update_fields(
        self, rule: LeadScoringRule, values: Dict[str, Any]
    ) -> LeadScoringRule:
        for key, value in values.items():
            setattr(rule, key, value)
        await self._db.flush()
        await self._db.refresh(rule)
        return rule

    async def deactivate(self, rule_id: int) -> bool:
        """Soft-delete a rule.  Returns ``False`` when no row matched."""
        result = await self._db.execute(
            update(LeadScoringRule)
            .where(LeadScoringRule.id == rule_id)
            .values(status=RuleStatus.INACTIVE.value, updated_at=func.now())
        )
        return result.rowcount > 0

    async def seed_if_empty(self) -> int:
        """Insert the default rules when the table is empty.

        Returns the number of rules inserted (0 when rules already
        exist).  The canonical definitions live in
        ``app.core.default_scoring_rules.DEFAULT_SCORING_RULES``.
        """
        from app.core.default_scoring_rules import DEFAULT_SCORING_RULES

        count_result = await self._db.execute(
            select(func.count()).select_from(LeadScoringRule)
        )
        if count_result.scalar():
            return 0

        logger.info("lead_scoring_master table is empty, seeding defaults")
        for rule_data in DEFAULT_SCORING_RULES:
            self._db.add(LeadScoringRule(**rule_data))
        await self._db.flush()
        logger.info("Seeded %d default scoring rules", len(DEFAULT_SCORING_RULES))
        return len(DEFAULT_SCORING_RULES)
