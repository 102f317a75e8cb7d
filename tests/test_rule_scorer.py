import logging

import pytest

from app.services.condition_evaluator import ConditionEvaluator
from app.services.rule_scorer import RuleScorer, RuleSpec

from factories import make_lead, make_rule


def _spec(rule_id, field, condition, value, score) -> RuleSpec:
    return RuleSpec(
        id=rule_id,
        name=f"Rule {rule_id}",
        field_checked=field,
        condition_type=condition,
        condition_value=value,
        score_value=score,
    )


@pytest.fixture
def scorer(fixed_clock) -> RuleScorer:
    return RuleScorer(ConditionEvaluator(clock=fixed_clock))


class TestScoreAccumulation:
    def test_matching_rules_are_summed(self, scorer: RuleScorer):
        rules = [
            _spec(1, "destination", "contains", "goa", 20),
            _spec(2, "budget", "greater_than", "50000", 15),
        ]
        lead = {"destination": "Goa Trip", "budget": "60000"}

        assert scorer.score(lead, rules) == 35

    def test_orm_like_leads_are_scored_the_same_way(self, scorer: RuleScorer):
        rules = [
            _spec(1, "destination", "contains", "goa", 20),
            _spec(2, "budget", "greater_than", "50000", 15),
        ]
        lead = make_lead(destination="Goa Trip", budget="60000")

        assert scorer.score(lead, rules) == 35

    def test_non_matching_rules_add_nothing(self, scorer: RuleScorer):
        rules = [_spec(1, "destination", "contains", "kerala", 20)]
        assert scorer.score({"destination": "Goa"}, rules) == 0

    def test_no_rules_scores_zero(self, scorer: RuleScorer):
        assert scorer.score({"destination": "Goa"}, []) == 0

    def test_negative_points_are_not_clamped(self, scorer: RuleScorer):
        rules = [
            _spec(1, "destination", "contains", "goa", 5),
            _spec(2, "email", "contains", "@yahoo.", -15),
        ]
        lead = {"destination": "Goa", "email": "sam@yahoo.com"}

        assert scorer.score(lead, rules) == -10

    def test_unparsable_number_only_skips_its_own_rule(self, scorer: RuleScorer):
        rules = [
            _spec(1, "destination", "contains", "goa", 20),
            _spec(2, "budget", "greater_than", "50000", 15),
        ]
        lead = {"destination": "Goa", "budget": "sNaN"}

        assert scorer.score(lead, rules) == 20

    def test_non_integer_score_value_counts_zero(self, scorer, caplog):
        rules = [
            _spec(1, "destination", "contains", "goa", "lots"),
            _spec(2, "destination", "contains", "goa", "7"),
        ]
        with caplog.at_level(logging.WARNING):
            total = scorer.score({"destination": "Goa"}, rules)

        assert total == 7
        assert "non-integer score_value" in caplog.text

    def test_unknown_field_is_skipped(self, scorer, caplog):
        rules = [
            _spec(1, "favourite_colour", "equals", "blue", 50),
            _spec(2, "destination", "contains", "goa", 5),
        ]
        lead = {"favourite_colour": "blue", "destination": "Goa"}

        with caplog.at_level(logging.WARNING):
            assert scorer.score(lead, rules) == 5
        assert "unknown lead field" in caplog.text

    def test_inputs_are_not_mutated(self, scorer: RuleScorer):
        rules = [_spec(1, "destination", "contains", "goa", 20)]
        lead = {"destination": "Goa Trip"}

        scorer.score(lead, rules)

        assert lead == {"destination": "Goa Trip"}
        assert rules == [_spec(1, "destination", "contains", "goa", 20)]


class TestBreakdown:
    def test_breakdown_lists_matched_rules(self, scorer: RuleScorer):
        rules = [
            _spec(1, "destination", "contains", "goa", 20),
            _spec(2, "budget", "greater_than", "50000", 15),
            _spec(3, "number_of_travelers", "between", "4,8", 10),
        ]
        lead = {"destination": "Goa Trip", "budget": "60000", "number_of_travelers": 2}

        result = scorer.breakdown(lead, rules)

        assert result.total_score == 35
        assert result.rules_evaluated == 3
        assert [m.rule_id for m in result.matched_rules] == [1, 2]
        assert result.matched_rules[0].field_value == "Goa Trip"
        assert result.matched_rules[1].score_added == 15


class TestRuleSpec:
    def test_from_model_copies_rule_columns(self):
        row = make_rule(9, "budget", "greater_than", "1000", 12, priority_range_hot=50)

        spec = RuleSpec.from_model(row)

        assert spec.id == 9
        assert spec.name == "Rule 9"
        assert spec.priority_range_hot == 50
        assert spec.priority_range_warm_min == 25

    def test_dict_form_restores_the_same_spec(self):
        spec = _spec(4, "destination", "high_inquiry_fit", "", 20)
        assert RuleSpec.from_dict(spec.to_dict()) == spec
