import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.lead_fields import extract_field, is_scorable_field
from app.services.condition_evaluator import (
    ConditionEvaluator,
    MatchOutcome,
    parse_int,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleSpec:
    """Immutable view of a ``LeadScoringRule`` row used during scoring.

    Detached from the ORM so rule sets can be cached in Redis and scored
    without touching the session.
    """

    id: Optional[int]
    name: str
    field_checked: str
    condition_type: str
    condition_value: str
    score_value: Any
    priority_range_hot: Optional[int] = None
    priority_range_warm_min: Optional[int] = None

    @classmethod
    def from_model(cls, rule: Any) -> "RuleSpec":
        return cls(
            id=rule.id,
            name=rule.scoring_criteria_name,
            field_checked=rule.field_checked,
            condition_type=rule.condition_type,
            condition_value=rule.condition_value or "",
            score_value=rule.score_value,
            priority_range_hot=rule.priority_range_hot,
            priority_range_warm_min=rule.priority_range_warm_min,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleSpec":
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MatchedRule:
    rule_id: Optional[int]
    rule_name: str
    field_checked: str
    field_value: Any
    score_added: int


@dataclass(frozen=True)
class ScoreBreakdown:
    total_score: int
    matched_rules: Tuple[MatchedRule, ...]
    rules_evaluated: int


class RuleScorer:
    """Sum the points of every rule whose condition matches a lead.

    *lead* may be a ``Lead`` row or a plain mapping of field values;
    fields are resolved through the lead field registry.  A matching rule
    whose ``score_value`` is not an integer adds 0.  Totals are not
    clamped and may be negative.
    """

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    def score(self, lead: Any, rules: Sequence[RuleSpec]) -> int:
        return self.breakdown(lead, rules).total_score

    def breakdown(self, lead: Any, rules: Sequence[RuleSpec]) -> ScoreBreakdown:
        total = 0
        matched: List[MatchedRule] = []

        for rule in rules:
            if not is_scorable_field(rule.field_checked):
                logger.warning(
                    "Rule %s checks unknown lead field %r; skipping",
                    rule.id,
                    rule.field_checked,
                )
                continue

            field_value = extract_field(lead, rule.field_checked)
            outcome = self._evaluator.check(
                field_value, rule.condition_type, rule.condition_value
            )
            if outcome is not MatchOutcome.MATCHED:
                continue

            points = parse_int(rule.score_value)
            if points is None:
                logger.warning(
                    "Rule %s has non-integer score_value %r; counting 0",
                    rule.id,
                    rule.score_value,
                )
                points = 0

            total += points
            matched.append(
                MatchedRule(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    field_checked=rule.field_checked,
                    field_value=field_value,
                    score_added=points,
                )
            )

        return ScoreBreakdown(
            total_score=total,
            matched_rules=tuple(matched),
            rules_evaluated=len(rules),
        )
