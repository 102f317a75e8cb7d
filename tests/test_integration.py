"""Repository and scoring tests against a real PostgreSQL database.

Every test is skipped when PostgreSQL cannot be reached.  Point the
``TEST_PG_*`` environment variables at a disposable server to run them.
"""

import os
from decimal import Decimal
from typing import AsyncGenerator

import asyncpg
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.core.constants import UNCATEGORIZED_SOURCE_NAME
from app.core.default_scoring_rules import DEFAULT_SCORING_RULES
from app.models import LeadSourceDetailed
from app.models.base import Base
from app.repositories.lead_repository import LeadRepository
from app.repositories.lead_source_repository import LeadSourceRepository
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.schemas.common import LeadPriority, TriggerType
from app.services.lead_scoring import LeadScoringEngine

_PG_HOST = os.getenv("TEST_PG_HOST", "localhost")
_PG_PORT = int(os.getenv("TEST_PG_PORT", "5433"))
_PG_USER = os.getenv("TEST_PG_USER", "postgres")
_PG_PASS = os.getenv("TEST_PG_PASSWORD", "postgres")
_TEST_DB = "travel_crm_test_db"

_TEST_DB_URL = (
    f"postgresql+asyncpg://{_PG_USER}:{_PG_PASS}@{_PG_HOST}:{_PG_PORT}/{_TEST_DB}"
)

# NullPool: each test runs on its own event loop
_TEST_ENGINE = create_async_engine(_TEST_DB_URL, echo=False, poolclass=NullPool)

_TestSessionLocal = async_sessionmaker(
    _TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def _override_get_db():
    """Yield a test-scoped async session."""
    async with _TestSessionLocal() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def _setup_database():
    """Create the test database and all tables; drop the tables afterwards.

    Skips the test when PostgreSQL cannot be reached.
    """
    try:
        conn = await asyncpg.connect(
            user=_PG_USER,
            password=_PG_PASS,
            host=_PG_HOST,
            port=_PG_PORT,
            database="postgres",
        )
        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1", _TEST_DB
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{_TEST_DB}"')
        await conn.close()
    except (OSError, asyncpg.PostgresError) as exc:
        pytest.skip(f"PostgreSQL not available ({_PG_HOST}:{_PG_PORT}): {exc}")

    async with _TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with _TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async DB session for direct repository tests."""
    async with _TestSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def integration_client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the FastAPI app with overridden DB dependency."""
    from app.core.database import get_db
    from app.dependencies import get_redis_client
    from app.main import app

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_redis_client] = lambda: None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _seed_sources(session: AsyncSession) -> dict:
    rows = {
        "uncategorized": LeadSourceDetailed(source_name=UNCATEGORIZED_SOURCE_NAME),
        "google": LeadSourceDetailed(
            source_name="Google Organic", utm_source="google", utm_campaign=""
        ),
        "google_bali": LeadSourceDetailed(
            source_name="Google Ads - Bali",
            utm_source="google",
            utm_campaign="bali_honeymoon",
        ),
    }
    session.add_all(rows.values())
    await session.commit()
    return {key: row.id for key, row in rows.items()}


async def _add_rule(repo: ScoringRuleRepository, **overrides):
    values = {
        "scoring_criteria_name": "Rule",
        "field_checked": "destination",
        "condition_type": "contains",
        "condition_value": "bali",
        "score_value": 10,
        "lead_type": "FIT",
        "automation_trigger": "Both",
        "priority_range_hot": 40,
        "priority_range_warm_min": 25,
        "priority_range_warm_max": 39,
        "priority_range_cold_max": 24,
        "status": "Active",
    }
    values.update(overrides)
    return await repo.create(**values)


class TestLeadSourceRepository:
    @pytest.mark.asyncio
    async def test_exact_campaign_match_wins(self, db_session):
        ids = await _seed_sources(db_session)
        repo = LeadSourceRepository(db_session)

        matched = await repo.find_matching_source_id(" Google ", "BALI_HONEYMOON")

        assert matched == ids["google_bali"]

    @pytest.mark.asyncio
    async def test_unknown_campaign_falls_back_to_source_row(self, db_session):
        ids = await _seed_sources(db_session)
        repo = LeadSourceRepository(db_session)

        assert await repo.find_matching_source_id("google", "winter_sale") == ids[
            "google"
        ]

    @pytest.mark.asyncio
    async def test_unknown_source_is_uncategorized(self, db_session):
        ids = await _seed_sources(db_session)
        repo = LeadSourceRepository(db_session)

        assert (
            await repo.find_matching_source_id("tiktok") == ids["uncategorized"]
        )


class TestScoringRuleRepository:
    @pytest.mark.asyncio
    async def test_seed_if_empty_only_seeds_once(self, db_session):
        repo = ScoringRuleRepository(db_session)

        assert await repo.seed_if_empty() == len(DEFAULT_SCORING_RULES)
        await repo.commit()
        assert await repo.seed_if_empty() == 0

    @pytest.mark.asyncio
    async def test_active_rules_filter_type_trigger_and_status(self, db_session):
        repo = ScoringRuleRepository(db_session)
        high = await _add_rule(repo, scoring_criteria_name="High", score_value=30)
        untyped = await _add_rule(
            repo, scoring_criteria_name="Any type", lead_type=None, score_value=5
        )
        await _add_rule(repo, scoring_criteria_name="Group only", lead_type="Group")
        await _add_rule(
            repo,
            scoring_criteria_name="Update only",
            automation_trigger="On Lead Update",
        )
        await _add_rule(repo, scoring_criteria_name="Retired", status="Inactive")
        await repo.commit()

        rules = await repo.get_active_rules("FIT", "On Lead Create")

        assert [rule.id for rule in rules] == [high.id, untyped.id]

    @pytest.mark.asyncio
    async def test_deactivate_is_a_soft_delete(self, db_session):
        repo = ScoringRuleRepository(db_session)
        rule = await _add_rule(repo)
        await repo.commit()

        assert await repo.deactivate(rule.id) is True
        assert await repo.deactivate(99999) is False
        await repo.commit()

        assert await repo.list_rules("Inactive") != []
        assert await repo.get_active_rules("FIT", "On Lead Create") == []


class TestScoringAgainstPostgres:
    @pytest.mark.asyncio
    async def test_run_scoring_persists_score_and_priority(self, db_session):
        rule_repo = ScoringRuleRepository(db_session)
        await _add_rule(rule_repo, scoring_criteria_name="Bali", score_value=25)
        await _add_rule(
            rule_repo,
            scoring_criteria_name="Big budget",
            field_checked="budget_per_person",
            condition_type="greater_than",
            condition_value="100000",
            score_value=20,
        )
        await rule_repo.commit()

        lead_repo = LeadRepository(db_session)
        lead = await lead_repo.create(
            name="Aisha Khan",
            email="aisha@example.com",
            phone="+91 98200 11111",
            lead_type="FIT",
            destination="Bali Honeymoon",
            budget_per_person=Decimal("120000"),
        )
        await lead_repo.commit()

        engine = LeadScoringEngine(lead_repo=lead_repo, scoring_rule_repo=rule_repo)
        outcome = await engine.run_scoring(lead.id, TriggerType.ON_LEAD_CREATE)

        assert outcome.score == 45
        assert outcome.priority is LeadPriority.HOT
        await lead_repo.refresh(lead)
        assert lead.lead_score == 45
        assert lead.lead_priority == "Hot"
        assert lead.last_score_calculated is not None

    @pytest.mark.asyncio
    async def test_no_rules_scores_cold(self, db_session):
        lead_repo = LeadRepository(db_session)
        lead = await lead_repo.create(
            name="Sam", email="sam@example.com", phone="+91 98200 44444"
        )
        await lead_repo.commit()

        engine = LeadScoringEngine(
            lead_repo=lead_repo, scoring_rule_repo=ScoringRuleRepository(db_session)
        )
        outcome = await engine.run_scoring(lead.id, TriggerType.ON_LEAD_CREATE)

        assert (outcome.score, outcome.priority) == (0, LeadPriority.COLD)

    @pytest.mark.asyncio
    async def test_unknown_lead_returns_none(self, db_session):
        engine = LeadScoringEngine(
            lead_repo=LeadRepository(db_session),
            scoring_rule_repo=ScoringRuleRepository(db_session),
        )

        assert await engine.run_scoring(424242, TriggerType.ON_LEAD_CREATE) is None


class TestLeadLifecycleOverHttp:
    @pytest.mark.asyncio
    async def test_capture_then_update_rescores(self, integration_client, db_session):
        rule_repo = ScoringRuleRepository(db_session)
        await _add_rule(rule_repo, scoring_criteria_name="Bali", score_value=25)
        await _add_rule(
            rule_repo,
            scoring_criteria_name="Group size",
            field_checked="number_of_travelers",
            condition_type="greater_than",
            condition_value="4",
            score_value=20,
        )
        await rule_repo.commit()
        ids = await _seed_sources(db_session)

        created = await integration_client.post(
            "/api/leads",
            json={
                "name": "Aisha Khan",
                "email": "aisha@example.com",
                "phone": "+91 98200 11111",
                "lead_type": "FIT",
                "destination": "Bali",
                "utm_source": "google",
                "utm_campaign": "bali_honeymoon",
            },
        )

        assert created.status_code == 201
        body = created.json()
        lead_id = body["lead"]["id"]
        assert body["utm_tracking"]["matched_source_id"] == ids["google_bali"]
        assert body["scoring"]["score"] == 25
        assert body["scoring"]["priority"] == "Warm"

        updated = await integration_client.patch(
            f"/api/leads/{lead_id}", json={"number_of_travelers": 6}
        )

        assert updated.status_code == 200
        assert updated.json()["scoring"]["score"] == 45
        assert updated.json()["lead"]["lead_priority"] == "Hot"
