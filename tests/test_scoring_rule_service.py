from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import (
    InvalidScoringRuleError,
    InvalidThresholdsError,
    ScoringRuleNotFoundError,
)
from app.schemas.scoring_rule import ScoringRuleCreate, ScoringRuleUpdate
from app.services.scoring_rule_service import (
    ScoringRuleService,
    validate_rule_definition,
)

from factories import make_rule


def _definition(**overrides):
    rule = {
        "field_checked": "budget",
        "condition_type": "greater_than",
        "condition_value": "50000",
        "priority_range_hot": 40,
        "priority_range_warm_min": 25,
    }
    rule.update(overrides)
    return rule


def _rule_repo(existing=None) -> AsyncMock:
    repo = AsyncMock()

    async def create(**values):
        return make_rule(
            11,
            values["field_checked"],
            values["condition_type"],
            values["condition_value"],
            values["score_value"],
        )

    repo.create = AsyncMock(side_effect=create)
    repo.get_by_id = AsyncMock(return_value=existing)

    async def update_fields(rule, values):
        for key, value in values.items():
            setattr(rule, key, value)
        return rule

    repo.update_fields = AsyncMock(side_effect=update_fields)
    repo.deactivate = AsyncMock(return_value=True)
    return repo


class TestValidateRuleDefinition:
    def test_valid_rule_passes(self):
        validate_rule_definition(_definition())

    def test_unknown_field_is_rejected(self):
        with pytest.raises(InvalidScoringRuleError, match="Unknown lead field"):
            validate_rule_definition(_definition(field_checked="favourite_colour"))

    def test_unknown_condition_is_rejected(self):
        with pytest.raises(InvalidScoringRuleError, match="Unknown condition type"):
            validate_rule_definition(_definition(condition_type="sounds_like"))

    def test_numeric_condition_needs_a_number(self):
        with pytest.raises(InvalidScoringRuleError, match="numeric"):
            validate_rule_definition(_definition(condition_value="fifty"))

    @pytest.mark.parametrize("value", ["4", "4,8,12", "a,8", ""])
    def test_between_needs_a_min_max_pair(self, value):
        with pytest.raises(InvalidScoringRuleError, match="min,max"):
            validate_rule_definition(
                _definition(condition_type="between", condition_value=value)
            )

    def test_between_rejects_swapped_bounds(self):
        with pytest.raises(InvalidScoringRuleError, match="exceeds"):
            validate_rule_definition(
                _definition(condition_type="between", condition_value="8,4")
            )

    @pytest.mark.parametrize("value", ["-1", "soon", "", "1.5"])
    def test_within_days_needs_whole_days(self, value):
        with pytest.raises(InvalidScoringRuleError, match="within_days"):
            validate_rule_definition(
                _definition(
                    field_checked="travel_date",
                    condition_type="within_days",
                    condition_value=value,
                )
            )

    def test_invalid_regex_is_rejected(self):
        with pytest.raises(InvalidScoringRuleError, match="regular expression"):
            validate_rule_definition(
                _definition(
                    field_checked="email",
                    condition_type="regex_match",
                    condition_value="([",
                )
            )

    def test_contains_needs_a_value(self):
        with pytest.raises(InvalidScoringRuleError, match="needs a condition_value"):
            validate_rule_definition(
                _definition(
                    field_checked="destination",
                    condition_type="contains",
                    condition_value="  ",
                )
            )

    def test_valueless_conditions_accept_an_empty_value(self):
        validate_rule_definition(
            _definition(
                field_checked="destination",
                condition_type="high_inquiry_fit",
                condition_value="",
            )
        )

    def test_incoherent_thresholds_are_rejected(self):
        with pytest.raises(InvalidThresholdsError):
            validate_rule_definition(
                _definition(priority_range_hot=20, priority_range_warm_min=25)
            )


class TestScoringRuleService:
    @pytest.mark.asyncio
    async def test_create_derives_ranges_and_bumps_cache_version(
        self, mock_cache, mock_redis
    ):
        repo = _rule_repo()
        service = ScoringRuleService(repo, mock_cache)

        await service.create_rule(
            ScoringRuleCreate(
                scoring_criteria_name="FIT - Budget Above 50k",
                field_checked="budget",
                condition_type="greater_than",
                condition_value="50000",
                score_value=15,
                lead_type="FIT",
                priority_range_hot=45,
                priority_range_warm_min=30,
            )
        )

        values = repo.create.await_args.kwargs
        assert values["condition_type"] == "greater_than"
        assert values["automation_trigger"] == "On Lead Create"
        assert values["status"] == "Active"
        assert values["priority_range_warm_max"] == 44
        assert values["priority_range_cold_max"] == 29
        repo.commit.assert_awaited_once()
        mock_redis.incr.assert_awaited_once_with("scoring_rules:version")

    @pytest.mark.asyncio
    async def test_invalid_create_writes_nothing(self, mock_cache, mock_redis):
        repo = _rule_repo()
        service = ScoringRuleService(repo, mock_cache)

        with pytest.raises(InvalidScoringRuleError):
            await service.create_rule(
                ScoringRuleCreate(
                    scoring_criteria_name="Broken",
                    field_checked="nationality",
                    condition_type="equals",
                    condition_value="UAE",
                    score_value=5,
                )
            )

        repo.create.assert_not_awaited()
        mock_redis.incr.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_validates_against_stored_values(self, mock_cache):
        stored = make_rule(3, "number_of_travelers", "between", "2,4", 5)
        service = ScoringRuleService(_rule_repo(stored), mock_cache)

        with pytest.raises(InvalidScoringRuleError):
            await service.update_rule(3, ScoringRuleUpdate(condition_value="4"))

    @pytest.mark.asyncio
    async def test_update_rederives_ranges_from_new_thresholds(
        self, mock_cache, mock_redis
    ):
        stored = make_rule(3, "budget", "greater_than", "50000", 15)
        repo = _rule_repo(stored)
        service = ScoringRuleService(repo, mock_cache)

        rule = await service.update_rule(3, ScoringRuleUpdate(priority_range_hot=50))

        assert rule.priority_range_hot == 50
        assert rule.priority_range_warm_max == 49
        assert rule.priority_range_cold_max == 24
        mock_redis.incr.assert_awaited_once_with("scoring_rules:version")

    @pytest.mark.asyncio
    async def test_update_of_unknown_rule_raises(self, mock_cache):
        service = ScoringRuleService(_rule_repo(None), mock_cache)
        with pytest.raises(ScoringRuleNotFoundError):
            await service.update_rule(99, ScoringRuleUpdate(score_value=1))

    @pytest.mark.asyncio
    async def test_delete_is_a_soft_delete(self, mock_cache, mock_redis):
        repo = _rule_repo()
        service = ScoringRuleService(repo, mock_cache)

        await service.delete_rule(3)

        repo.deactivate.assert_awaited_once_with(3)
        repo.commit.assert_awaited_once()
        mock_redis.incr.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_of_unknown_rule_raises(self, mock_cache):
        repo = _rule_repo()
        repo.deactivate.return_value = False
        service = ScoringRuleService(repo, mock_cache)

        with pytest.raises(ScoringRuleNotFoundError):
            await service.delete_rule(99)
        repo.commit.assert_not_awaited()
