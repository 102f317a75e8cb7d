from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import InvalidLeadDataError, LeadNotFoundError
from app.schemas.common import LeadPriority, TriggerType
from app.schemas.lead import LeadCreate, LeadPatch
from app.services.lead_capture_service import LeadCaptureService
from app.services.lead_scoring import ScoringOutcome
from app.services.lead_update_service import LeadUpdateService

from factories import FIXED_NOW, make_lead


def _scoring_engine(outcome) -> AsyncMock:
    engine = AsyncMock()
    engine.run_scoring = AsyncMock(return_value=outcome)
    return engine


def _notifier(result: bool = True) -> AsyncMock:
    notifier = AsyncMock()
    notifier.notify = AsyncMock(return_value=result)
    return notifier


def _lead_repo_for_create() -> AsyncMock:
    repo = AsyncMock()

    async def create(**values):
        return make_lead(id=7, **values)

    repo.create = AsyncMock(side_effect=create)
    return repo


def _source_repo(source_id=None) -> AsyncMock:
    repo = AsyncMock()
    repo.find_matching_source_id = AsyncMock(return_value=source_id)
    return repo


def _lead_create(**overrides) -> LeadCreate:
    data = {
        "name": "Aisha Khan",
        "email": "aisha@example.com",
        "phone": "+91 98200 11111",
        "lead_type": "FIT",
        "destination": "Bali Honeymoon",
        "budget": "80000",
    }
    data.update(overrides)
    return LeadCreate(**data)


HOT = ScoringOutcome(45, LeadPriority.HOT, calculated_at=FIXED_NOW)
WARM = ScoringOutcome(30, LeadPriority.WARM, calculated_at=FIXED_NOW)


class TestLeadCapture:
    @pytest.mark.asyncio
    async def test_hot_lead_triggers_automation(self):
        engine = _scoring_engine(HOT)
        notifier = _notifier()
        lead_repo = _lead_repo_for_create()
        service = LeadCaptureService(engine, notifier)

        result = await service.capture_lead(_lead_create(), lead_repo, _source_repo())

        engine.run_scoring.assert_awaited_once_with(7, TriggerType.ON_LEAD_CREATE)
        notifier.notify.assert_awaited_once_with(7, "Hot", 45)
        lead_repo.commit.assert_awaited_once()
        assert result["scoring"] == {
            "score": 45,
            "priority": LeadPriority.HOT,
            "auto_calculated": True,
            "automation_triggered": True,
        }
        assert result["lead"].lead_score == 45
        assert result["lead"].lead_priority == "Hot"
        assert result["lead"].last_score_calculated == FIXED_NOW

    @pytest.mark.asyncio
    async def test_failed_automation_call_is_reported(self):
        service = LeadCaptureService(_scoring_engine(HOT), _notifier(False))

        result = await service.capture_lead(
            _lead_create(), _lead_repo_for_create(), _source_repo()
        )

        assert result["scoring"]["automation_triggered"] is False

    @pytest.mark.asyncio
    async def test_warm_lead_does_not_trigger_automation(self):
        notifier = _notifier()
        service = LeadCaptureService(_scoring_engine(WARM), notifier)

        result = await service.capture_lead(
            _lead_create(), _lead_repo_for_create(), _source_repo()
        )

        notifier.notify.assert_not_awaited()
        assert result["scoring"]["priority"] is LeadPriority.WARM

    @pytest.mark.asyncio
    async def test_failed_scoring_reports_zero_cold(self):
        notifier = _notifier()
        service = LeadCaptureService(_scoring_engine(None), notifier)

        result = await service.capture_lead(
            _lead_create(), _lead_repo_for_create(), _source_repo()
        )

        assert result["scoring"] is None
        assert result["lead"].lead_score == 0
        assert result["lead"].lead_priority == "Cold"
        notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_utm_tags_are_matched_to_a_source(self):
        lead_repo = _lead_repo_for_create()
        source_repo = _source_repo(3)
        service = LeadCaptureService(_scoring_engine(WARM), _notifier())

        result = await service.capture_lead(
            _lead_create(utm_source="google", utm_campaign="bali_honeymoon"),
            lead_repo,
            source_repo,
        )

        source_repo.find_matching_source_id.assert_awaited_once_with(
            "google", "bali_honeymoon"
        )
        assert lead_repo.create.await_args.kwargs["lead_source_id"] == 3
        assert lead_repo.create.await_args.kwargs["status"] == "New"
        assert result["utm_tracking"] == {"captured": True, "matched_source_id": 3}

    @pytest.mark.asyncio
    async def test_source_lookup_failure_still_saves_the_lead(self):
        lead_repo = _lead_repo_for_create()
        source_repo = _source_repo()
        source_repo.find_matching_source_id.side_effect = RuntimeError("timeout")
        service = LeadCaptureService(_scoring_engine(WARM), _notifier())

        result = await service.capture_lead(
            _lead_create(utm_source="google"), lead_repo, source_repo
        )

        source_repo.rollback.assert_awaited_once()
        assert lead_repo.create.await_args.kwargs["lead_source_id"] is None
        assert result["utm_tracking"] == {"captured": True, "matched_source_id": None}

    @pytest.mark.asyncio
    async def test_no_utm_tags_skips_source_lookup(self):
        source_repo = _source_repo()
        service = LeadCaptureService(_scoring_engine(WARM), _notifier())

        result = await service.capture_lead(
            _lead_create(), _lead_repo_for_create(), source_repo
        )

        source_repo.find_matching_source_id.assert_not_awaited()
        assert result["utm_tracking"]["captured"] is False


class TestLeadUpdate:
    def _lead_repo(self, lead) -> AsyncMock:
        repo = AsyncMock()
        repo.get_by_id = AsyncMock(return_value=lead)

        async def update_fields(target, values):
            for key, value in values.items():
                setattr(target, key, value)
            return target

        repo.update_fields = AsyncMock(side_effect=update_fields)
        return repo

    @pytest.mark.asyncio
    async def test_unknown_lead_raises(self):
        service = LeadUpdateService(_scoring_engine(WARM))
        with pytest.raises(LeadNotFoundError):
            await service.update_lead(
                404, LeadPatch(status="Contacted"), self._lead_repo(None), _source_repo()
            )

    @pytest.mark.asyncio
    async def test_empty_patch_is_rejected(self):
        service = LeadUpdateService(_scoring_engine(WARM))
        with pytest.raises(InvalidLeadDataError):
            await service.update_lead(
                1, LeadPatch(), self._lead_repo(make_lead()), _source_repo()
            )

    @pytest.mark.asyncio
    async def test_update_rescores_with_update_trigger(self):
        engine = _scoring_engine(WARM)
        lead_repo = self._lead_repo(make_lead(id=5))
        service = LeadUpdateService(engine)

        result = await service.update_lead(
            5, LeadPatch(response_time_hours=4), lead_repo, _source_repo()
        )

        lead_repo.update_fields.assert_awaited_once()
        assert lead_repo.update_fields.await_args.args[1] == {"response_time_hours": 4}
        lead_repo.commit.assert_awaited_once()
        engine.run_scoring.assert_awaited_once_with(5, TriggerType.ON_LEAD_UPDATE)
        assert result["scoring"] == {
            "score": 30,
            "priority": LeadPriority.WARM,
            "auto_recalculated": True,
        }
        assert result["lead"].response_time_hours == 4
        assert result["lead"].lead_score == 30

    @pytest.mark.asyncio
    async def test_failed_scoring_keeps_previous_values(self):
        stored = make_lead(id=5, lead_score=42, lead_priority="Hot")
        service = LeadUpdateService(_scoring_engine(None))

        result = await service.update_lead(
            5, LeadPatch(status="Contacted"), self._lead_repo(stored), _source_repo()
        )

        assert result["scoring"] is None
        assert result["lead"].lead_score == 42
        assert result["lead"].lead_priority == "Hot"
        assert result["lead"].status == "Contacted"

    @pytest.mark.asyncio
    async def test_utm_change_rematches_with_stored_campaign(self):
        stored = make_lead(id=5, utm_source="facebook", utm_campaign="kashmir_group")
        source_repo = _source_repo(9)
        lead_repo = self._lead_repo(stored)
        service = LeadUpdateService(_scoring_engine(WARM))

        await service.update_lead(
            5, LeadPatch(utm_source="instagram"), lead_repo, source_repo
        )

        source_repo.find_matching_source_id.assert_awaited_once_with(
            "instagram", "kashmir_group"
        )
        assert lead_repo.update_fields.await_args.args[1] == {
            "utm_source": "instagram",
            "lead_source_id": 9,
        }

    @pytest.mark.asyncio
    async def test_non_utm_change_keeps_the_source(self):
        source_repo = _source_repo(9)
        service = LeadUpdateService(_scoring_engine(WARM))

        await service.update_lead(
            5, LeadPatch(destination="Goa"), self._lead_repo(make_lead()), source_repo
        )

        source_repo.find_matching_source_id.assert_not_awaited()
