import logging
from typing import Any, Dict, Optional

from app.core.constants import DEFAULT_LEAD_STATUS
from app.repositories.lead_repository import LeadRepository
from app.repositories.lead_source_repository import LeadSourceRepository
from app.schemas.common import LeadPriority, TriggerType
from app.schemas.lead import LeadCreate, LeadOut
from app.services.automation_service import AutomationNotifier
from app.services.lead_scoring import LeadScoringEngine, ScoringOutcome

logger = logging.getLogger(__name__)


async def resolve_lead_source(
    source_repo: LeadSourceRepository,
    utm_source: Optional[str],
    utm_campaign: Optional[str],
) -> Optional[int]:
    """Match UTM tags to a ``lead_source_detailed`` row.

    A failed lookup is logged, the session rolled back, and ``None``
    returned so the lead is still saved without attribution.
    """
    if not utm_source:
        return None
    try:
        return await source_repo.find_matching_source_id(
            utm_source, utm_campaign or ""
        )
    except Exception:
        logger.warning(
            "UTM source lookup failed for %r / %r",
            utm_source,
            utm_campaign,
            exc_info=True,
        )
        await source_repo.rollback()
        return None


def apply_outcome(lead: LeadOut, outcome: ScoringOutcome) -> LeadOut:
    """Return *lead* with the scoring columns taken from *outcome*."""
    return lead.model_copy(
        update={
            "lead_score": outcome.score,
            "lead_priority": outcome.priority.value,
            "last_score_calculated": outcome.calculated_at,
        }
    )


class LeadCaptureService:
    """Orchestrates the lead-capture workflow.

    Dependencies are injected via the constructor so the class remains
    stateless and easily testable.
    """

    def __init__(
        self,
        scoring_engine: LeadScoringEngine,
        notifier: Optional[AutomationNotifier] = None,
    ) -> None:
        self._scoring_engine = scoring_engine
        self._notifier = notifier or AutomationNotifier()

    async def capture_lead(
        self,
        lead_data: LeadCreate,
        lead_repo: LeadRepository,
        source_repo: LeadSourceRepository,
    ) -> Dict[str, Any]:
        """Execute the lead-capture pipeline.

        Steps:
        1. Match UTM tags to a lead source
        2. Persist the lead and commit
        3. Score it with the ``On Lead Create`` rules
        4. Notify the automation endpoint when the lead is Hot

        Scoring never fails the request: when it does not complete the
        lead is reported as 0 / Cold and ``scoring`` is ``None``.
        """
        values = lead_data.model_dump(exclude_none=True)

        matched_source_id = await resolve_lead_source(
            source_repo, lead_data.utm_source, lead_data.utm_campaign
        )

        lead = await lead_repo.create(
            **values,
            lead_source_id=matched_source_id,
            status=DEFAULT_LEAD_STATUS,
        )
        await lead_repo.commit()
        snapshot = LeadOut.model_validate(lead)
        logger.info("Lead %s captured (source_id=%s)", snapshot.id, matched_source_id)

        utm_tracking = {
            "captured": bool(
                lead_data.utm_source or lead_data.utm_medium or lead_data.utm_campaign
            ),
            "matched_source_id": matched_source_id,
        }

        outcome = await self._scoring_engine.run_scoring(
            snapshot.id, TriggerType.ON_LEAD_CREATE
        )
        if outcome is None:
            logger.warning(
                "Lead %s saved without a score; reporting 0 / %s",
                snapshot.id,
                LeadPriority.COLD.value,
            )
            snapshot = snapshot.model_copy(
                update={"lead_score": 0, "lead_priority": LeadPriority.COLD.value}
            )
            return {"lead": snapshot, "utm_tracking": utm_tracking, "scoring": None}

        automation_triggered = False
        if outcome.priority is LeadPriority.HOT:
            automation_triggered = await self._notifier.notify(
                snapshot.id, outcome.priority.value, outcome.score
            )

        return {
            "lead": apply_outcome(snapshot, outcome),
            "utm_tracking": utm_tracking,
            "scoring": {
                "score": outcome.score,
                "priority": outcome.priority,
                "auto_calculated": True,
                "automation_triggered": automation_triggered,
            },
        }
