"""Sample data seeder: default rules, lead sources and scored demo leads."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import text

from app.core.config import settings
from app.core.constants import UNCATEGORIZED_SOURCE_NAME
from app.models import LeadSourceDetailed
from app.repositories.lead_repository import LeadRepository
from app.repositories.scoring_rule_repository import ScoringRuleRepository
from app.schemas.common import TriggerType
from app.services.lead_scoring import LeadScoringEngine

LEAD_SOURCES = [
    {"source_name": UNCATEGORIZED_SOURCE_NAME},
    {
        "source_name": "Google Ads - Bali Honeymoon",
        "utm_source": "google",
        "utm_medium": "cpc",
        "utm_campaign": "bali_honeymoon",
    },
    {"source_name": "Google Organic", "utm_source": "google", "utm_medium": "organic"},
    {
        "source_name": "Instagram - Kashmir Groups",
        "utm_source": "instagram",
        "utm_medium": "social",
        "utm_campaign": "kashmir_group",
    },
    {"source_name": "Facebook", "utm_source": "facebook", "utm_medium": "social"},
]


def _sample_leads():
    soon = date.today() + timedelta(days=10)
    later = date.today() + timedelta(days=75)
    return [
        {
            "name": "Aisha Khan",
            "email": "aisha.khan@gmail.com",
            "phone": "+91 98200 11111",
            "lead_type": "FIT",
            "destination": "Bali",
            "number_of_travelers": 2,
            "travel_date": soon,
            "custom_notes": "Honeymoon, wants a private pool villa",
            "budget_per_person": Decimal("120000"),
            "utm_source": "google",
            "utm_campaign": "bali_honeymoon",
        },
        {
            "name": "Rohan Mehta",
            "email": "rohan@mehta-family.in",
            "phone": "+91 98200 22222",
            "lead_type": "Group",
            "destination": "Kashmir",
            "number_of_travelers": 6,
            "travel_date": soon,
            "travel_dates": "Srinagar, Gulmarg, Pahalgam",
            "utm_source": "instagram",
            "utm_campaign": "kashmir_group",
        },
        {
            "name": "Priya Nair",
            "email": "priya.nair@acme-corp.com",
            "phone": "+91 98200 33333",
            "lead_type": "Corporate",
            "destination": "Goa",
            "number_of_travelers": 25,
            "travel_date": later,
            "budget": Decimal("1500000"),
        },
        {
            "name": "Sam Fernandes",
            "email": "sam.f@yahoo.com",
            "phone": "+91 98200 44444",
            "destination": "Shimla",
            "number_of_travelers": 1,
            "travel_date": later,
        },
    ]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        print("Seeding sample lead-scoring data")

        # TRUNCATE ... CASCADE handles FK ordering
        await session.execute(
            text(
                "TRUNCATE TABLE "
                "automation_log, "
                "leads, "
                "lead_source_detailed, "
                "lead_scoring_master "
                "RESTART IDENTITY CASCADE"
            )
        )
        await session.commit()
        print("Cleared existing data")

        rule_repo = ScoringRuleRepository(session)
        inserted = await rule_repo.seed_if_empty()
        print(f"Created {inserted} lead scoring rules")

        for source in LEAD_SOURCES:
            session.add(LeadSourceDetailed(**source))
        await session.flush()
        print(f"Created {len(LEAD_SOURCES)} lead sources")

        lead_repo = LeadRepository(session)
        leads = [await lead_repo.create(**data) for data in _sample_leads()]
        await session.commit()
        print(f"Created {len(leads)} leads")

        scoring_engine = LeadScoringEngine(
            lead_repo=lead_repo, scoring_rule_repo=rule_repo
        )
        for lead in leads:
            outcome = await scoring_engine.run_scoring(
                lead.id, TriggerType.ON_LEAD_CREATE
            )
            if outcome is None:
                print(f"  {lead.name}: scoring failed")
            else:
                print(f"  {lead.name}: {outcome.score} ({outcome.priority.value})")

        print("Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
