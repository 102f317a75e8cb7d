import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from app.core.cache import CacheService
from app.core.config import settings
from app.core.exceptions import DatabaseNotConfiguredError, InvalidThresholdsError
from app.repositories.lead_repository import LeadRepository
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.schemas.common import LeadPriority, TriggerType
from app.services.condition_evaluator import ConditionEvaluator
from app.services.priority_classifier import PriorityThresholds
from app.services.rule_scorer import MatchedRule, RuleScorer, RuleSpec

logger = logging.getLogger(__name__)


class ScoringStage(str, Enum):
    FETCHING = "fetching"
    EVALUATING = "evaluating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


def default_thresholds() -> PriorityThresholds:
    return PriorityThresholds(
        hot=settings.DEFAULT_HOT_THRESHOLD,
        warm_min=settings.DEFAULT_WARM_MIN_THRESHOLD,
    )


@dataclass(frozen=True)
class RuleSet:
    """Active rules for one (lead type, trigger) pair and their thresholds.

    Thresholds belong to the rule set.  The stored schema repeats them on
    every rule row, so they are read from the first rule of the set
    (highest ``score_value``, lowest id on ties).  Unset columns and an
    empty set fall back to the defaults; incoherent stored thresholds
    are logged and replaced by the defaults.
    """

    lead_type: str
    trigger_type: TriggerType
    rules: Tuple[RuleSpec, ...]
    thresholds: PriorityThresholds

    @classmethod
    def build(
        cls,
        lead_type: str,
        trigger_type: TriggerType,
        rules: Sequence[RuleSpec],
        defaults: PriorityThresholds,
    ) -> "RuleSet":
        return cls(
            lead_type=lead_type,
            trigger_type=trigger_type,
            rules=tuple(rules),
            thresholds=cls._thresholds_from(rules, defaults),
        )

    @staticmethod
    def _thresholds_from(
        rules: Sequence[RuleSpec], defaults: PriorityThresholds
    ) -> PriorityThresholds:
        if not rules:
            return defaults
        source = rules[0]
        hot = (
            source.priority_range_hot
            if source.priority_range_hot is not None
            else defaults.hot
        )
        warm_min = (
            source.priority_range_warm_min
            if source.priority_range_warm_min is not None
            else defaults.warm_min
        )
        try:
            return PriorityThresholds(hot=hot, warm_min=warm_min)
        except InvalidThresholdsError as exc:
            logger.error(
                "Rule %s carries incoherent thresholds (%s); using defaults",
                source.id,
                exc.detail,
            )
            return defaults


@dataclass(frozen=True)
class ScoringOutcome:
    score: int
    priority: LeadPriority
    matched_rules: Tuple[MatchedRule, ...] = ()
    rules_evaluated: int = 0
    calculated_at: Optional[datetime] = None


class LeadScoringEngine:
    """Score leads against the active rule set and persist the result.

    ``run_scoring`` is the entry point used by the lead create and update
    flows.  It never raises: a missing lead, a failed query, a failed
    write or a run exceeding ``SCORING_TIMEOUT_SECONDS`` all end in
    ``None`` after the session is rolled back, and callers fall back to
    the default (or previously stored) score and priority.

    A rule fetch that fails aborts the run; a fetch that returns no rules
    scores the lead 0 / Cold with the default thresholds.
    """

    def __init__(
        self,
        lead_repo: Optional[LeadRepository] = None,
        scoring_rule_repo: Optional[ScoringRuleRepository] = None,
        cache: Optional[CacheService] = None,
        evaluator: Optional[ConditionEvaluator] = None,
        timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._lead_repo = lead_repo
        self._rule_repo = scoring_rule_repo
        self._cache: CacheService = cache or CacheService()
        self._scorer = RuleScorer(evaluator)
        self._timeout = timeout if timeout is not None else settings.SCORING_TIMEOUT_SECONDS
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_scoring(
        self, lead_id: int, trigger_type: Union[TriggerType, str]
    ) -> Optional[ScoringOutcome]:
        """Score a stored lead, persist the result and return it."""
        if self._lead_repo is None or self._rule_repo is None:
            logger.warning(
                "Scoring skipped for lead %s: database not configured", lead_id
            )
            return None

        try:
            trigger = TriggerType(trigger_type)
        except ValueError:
            logger.error("Unknown trigger type %r for lead %s", trigger_type, lead_id)
            return None

        try:
            return await asyncio.wait_for(
                self._run(lead_id, trigger), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "Scoring lead %s timed out after %.1fs (stage=%s)",
                lead_id,
                self._timeout,
                ScoringStage.FAILED.value,
            )
        except Exception:
            logger.error(
                "Scoring lead %s failed (stage=%s)",
                lead_id,
                ScoringStage.FAILED.value,
                exc_info=True,
            )
        await self._rollback_quietly()
        return None

    async def preview(
        self,
        lead_data: Mapping[str, Any],
        trigger_type: Union[TriggerType, str] = TriggerType.ON_LEAD_CREATE,
    ) -> ScoringOutcome:
        """Score an unsaved lead payload without persisting anything.

        Unlike ``run_scoring`` errors propagate to the caller.
        """
        if self._rule_repo is None:
            raise DatabaseNotConfiguredError()
        trigger = TriggerType(trigger_type)
        lead_type = lead_data.get("lead_type") or settings.DEFAULT_LEAD_TYPE
        rule_set = await self.load_rule_set(lead_type, trigger)
        return self._score(lead_data, rule_set)

    async def load_rule_set(self, lead_type: str, trigger: TriggerType) -> RuleSet:
        """Fetch the active rule set, from Redis when cached."""
        # One version read per load: a bump during the fetch must not
        # relabel the rows fetched before it as current
        version = await self._cache.rules_version()
        specs = await self._cached_rules(version, lead_type, trigger)
        if specs is None:
            rows = await self._rule_repo.get_active_rules(lead_type, trigger.value)
            specs = [RuleSpec.from_model(row) for row in rows]
            await self._store_rules(version, lead_type, trigger, specs)
        return RuleSet.build(lead_type, trigger, specs, default_thresholds())

    # ------------------------------------------------------------------
    # Scoring run
    # ------------------------------------------------------------------

    async def _run(self, lead_id: int, trigger: TriggerType) -> Optional[ScoringOutcome]:
        logger.debug("Scoring lead %s: %s", lead_id, ScoringStage.FETCHING.value)
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            logger.warning("Scoring skipped: lead %s not found", lead_id)
            return None

        lead_type = lead.lead_type or settings.DEFAULT_LEAD_TYPE
        rule_set = await self.load_rule_set(lead_type, trigger)

        logger.debug("Scoring lead %s: %s", lead_id, ScoringStage.EVALUATING.value)
        outcome = self._score(lead, rule_set)

        logger.debug("Scoring lead %s: %s", lead_id, ScoringStage.PERSISTING.value)
        await self._lead_repo.update_score(
            lead_id, outcome.score, outcome.priority.value, outcome.calculated_at
        )
        await self._lead_repo.commit()

        logger.info(
            "Lead %s scored %d (%s) on %s: %d/%d rules matched",
            lead_id,
            outcome.score,
            outcome.priority.value,
            trigger.value,
            len(outcome.matched_rules),
            outcome.rules_evaluated,
        )
        return outcome

    def _score(self, lead: Any, rule_set: RuleSet) -> ScoringOutcome:
        breakdown = self._scorer.breakdown(lead, rule_set.rules)
        return ScoringOutcome(
            score=breakdown.total_score,
            priority=rule_set.thresholds.classify(breakdown.total_score),
            matched_rules=breakdown.matched_rules,
            rules_evaluated=breakdown.rules_evaluated,
            calculated_at=self._clock(),
        )

    async def _rollback_quietly(self) -> None:
        try:
            await self._lead_repo.rollback()
        except Exception:
            logger.warning("Rollback after failed scoring run also failed")

    # ------------------------------------------------------------------
    # Rule-set cache
    # ------------------------------------------------------------------

    async def _cached_rules(
        self, version: str, lead_type: str, trigger: TriggerType
    ) -> Optional[List[RuleSpec]]:
        cached = await self._cache.get_rule_set(version, lead_type, trigger.value)
        if cached is None:
            return None
        try:
            return [RuleSpec.from_dict(item) for item in cached]
        except TypeError:
            logger.warning("Discarding malformed cached rule set for %s", lead_type)
            return None

    async def _store_rules(
        self,
        version: str,
        lead_type: str,
        trigger: TriggerType,
        specs: List[RuleSpec],
    ) -> None:
        await self._cache.set_rule_set(
            version,
            lead_type,
            trigger.value,
            [spec.to_dict() for spec in specs],
            ttl=settings.REDIS_RULES_CACHE_TTL,
        )
