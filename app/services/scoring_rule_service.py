import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from app.core.cache import CacheService
from app.core.config import settings
from app.core.constants import CONDITION_TYPES, NUMERIC_CONDITIONS
from app.core.exceptions import InvalidScoringRuleError, ScoringRuleNotFoundError
from app.core.lead_fields import is_scorable_field
from app.models.scoring_rule import LeadScoringRule
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.schemas.common import ConditionType, RuleStatus
from app.schemas.scoring_rule import ScoringRuleCreate, ScoringRuleUpdate
from app.services.condition_evaluator import parse_float
from app.services.priority_classifier import PriorityThresholds

logger = logging.getLogger(__name__)

# Conditions where an empty value would match every lead
_NON_EMPTY_VALUE_CONDITIONS = frozenset(
    {
        ConditionType.CONTAINS.value,
        ConditionType.NOT_CONTAINS.value,
        ConditionType.STARTS_WITH.value,
        ConditionType.ENDS_WITH.value,
        ConditionType.REGEX_MATCH.value,
    }
)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _stored_or(value: Optional[int], default: int) -> int:
    return default if value is None else value


def validate_rule_definition(rule: Mapping[str, Any]) -> None:
    """Reject a rule that could never be evaluated as written.

    Raises:
        InvalidScoringRuleError: Unknown field or condition type, or a
            condition value the condition cannot parse.
        InvalidThresholdsError: ``priority_range_hot`` below
            ``priority_range_warm_min``.
    """
    field_checked = rule["field_checked"]
    condition_type = _enum_value(rule["condition_type"])
    condition_value = (rule.get("condition_value") or "").strip()

    if not is_scorable_field(field_checked):
        raise InvalidScoringRuleError(
            f"Unknown lead field '{field_checked}' in field_checked"
        )
    if condition_type not in CONDITION_TYPES:
        raise InvalidScoringRuleError(f"Unknown condition type '{condition_type}'")

    if condition_type in NUMERIC_CONDITIONS:
        if parse_float(condition_value) is None:
            raise InvalidScoringRuleError(
                f"{condition_type} needs a numeric condition_value, "
                f"got '{condition_value}'"
            )
    elif condition_type == ConditionType.BETWEEN.value:
        parts = condition_value.split(",")
        bounds = [parse_float(part) for part in parts]
        if len(parts) != 2 or None in bounds:
            raise InvalidScoringRuleError(
                f"between needs a 'min,max' condition_value, got '{condition_value}'"
            )
        if bounds[0] > bounds[1]:
            raise InvalidScoringRuleError(
                f"between minimum exceeds maximum in '{condition_value}'"
            )
    elif condition_type == ConditionType.WITHIN_DAYS.value:
        if not condition_value.isdigit():
            raise InvalidScoringRuleError(
                "within_days needs a non-negative whole number of days, "
                f"got '{condition_value}'"
            )
    elif condition_type in _NON_EMPTY_VALUE_CONDITIONS and not condition_value:
        raise InvalidScoringRuleError(f"{condition_type} needs a condition_value")

    if condition_type == ConditionType.REGEX_MATCH.value:
        try:
            re.compile(condition_value)
        except re.error as exc:
            raise InvalidScoringRuleError(f"Invalid regular expression: {exc}")

    PriorityThresholds(
        hot=rule["priority_range_hot"], warm_min=rule["priority_range_warm_min"]
    )


def _with_derived_ranges(values: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in the Warm and Cold upper bounds implied by the thresholds."""
    if values.get("priority_range_warm_max") is None:
        values["priority_range_warm_max"] = values["priority_range_hot"] - 1
    if values.get("priority_range_cold_max") is None:
        values["priority_range_cold_max"] = values["priority_range_warm_min"] - 1
    return values


class ScoringRuleService:
    """Administration of ``lead_scoring_master`` rows.

    Every change is validated before it is written and bumps the rule
    cache version so no stale rule set is served afterwards.
    """

    def __init__(
        self,
        rule_repo: ScoringRuleRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._rule_repo = rule_repo
        self._cache: CacheService = cache or CacheService()

    async def list_rules(
        self, status: str = RuleStatus.ACTIVE.value, lead_type: Optional[str] = None
    ) -> List[LeadScoringRule]:
        return await self._rule_repo.list_rules(status, lead_type)

    async def create_rule(self, payload: ScoringRuleCreate) -> LeadScoringRule:
        values = {
            key: _enum_value(value) for key, value in payload.model_dump().items()
        }
        validate_rule_definition(values)
        rule = await self._rule_repo.create(**_with_derived_ranges(values))
        await self._rule_repo.commit()
        await self._invalidate_rule_cache()
        logger.info("Scoring rule %s created: %s", rule.id, rule.scoring_criteria_name)
        return rule

    async def update_rule(
        self, rule_id: int, payload: ScoringRuleUpdate
    ) -> LeadScoringRule:
        rule = await self._rule_repo.get_by_id(rule_id)
        if rule is None:
            raise ScoringRuleNotFoundError(f"Scoring rule {rule_id} not found")

        submitted = payload.model_dump(exclude_unset=True, exclude_none=True)
        changes = {key: _enum_value(value) for key, value in submitted.items()}
        merged = {
            "field_checked": rule.field_checked,
            "condition_type": rule.condition_type,
            "condition_value": rule.condition_value,
            "priority_range_hot": _stored_or(
                rule.priority_range_hot, settings.DEFAULT_HOT_THRESHOLD
            ),
            "priority_range_warm_min": _stored_or(
                rule.priority_range_warm_min, settings.DEFAULT_WARM_MIN_THRESHOLD
            ),
            **changes,
        }
        validate_rule_definition(merged)

        # Thresholds moved without explicit upper bounds: re-derive them
        if "priority_range_hot" in changes and "priority_range_warm_max" not in changes:
            changes["priority_range_warm_max"] = merged["priority_range_hot"] - 1
        if (
            "priority_range_warm_min" in changes
            and "priority_range_cold_max" not in changes
        ):
            changes["priority_range_cold_max"] = merged["priority_range_warm_min"] - 1

        rule = await self._rule_repo.update_fields(rule, changes)
        await self._rule_repo.commit()
        await self._invalidate_rule_cache()
        logger.info("Scoring rule %s updated: %s", rule_id, ", ".join(sorted(changes)))
        return rule

    async def delete_rule(self, rule_id: int) -> None:
        """Soft delete: the rule is marked Inactive, never removed."""
        if not await self._rule_repo.deactivate(rule_id):
            raise ScoringRuleNotFoundError(f"Scoring rule {rule_id} not found")
        await self._rule_repo.commit()
        await self._invalidate_rule_cache()
        logger.info("Scoring rule %s deactivated", rule_id)

    async def _invalidate_rule_cache(self) -> None:
        await self._cache.bump_rules_version()
