import logging
from typing import Any, Dict

from app.core.exceptions import InvalidLeadDataError, LeadNotFoundError
from app.repositories.lead_repository import LeadRepository
from app.repositories.lead_source_repository import LeadSourceRepository
from app.schemas.common import TriggerType
from app.schemas.lead import LeadOut, LeadPatch
from app.services.lead_capture_service import apply_outcome, resolve_lead_source
from app.services.lead_scoring import LeadScoringEngine

logger = logging.getLogger(__name__)

_UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign")


class LeadUpdateService:
    """Orchestrates the lead-update workflow.

    All database operations are delegated to injected repositories.
    """

    def __init__(self, scoring_engine: LeadScoringEngine) -> None:
        self._scoring_engine = scoring_engine

    async def update_lead(
        self,
        lead_id: int,
        patch: LeadPatch,
        lead_repo: LeadRepository,
        source_repo: LeadSourceRepository,
    ) -> Dict[str, Any]:
        # 1. Fetch the lead
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")

        values = patch.model_dump(exclude_unset=True)
        if not values:
            raise InvalidLeadDataError("No fields to update")

        # 2. Re-match the lead source when any UTM tag changes
        if any(name in values for name in _UTM_FIELDS):
            utm_source = values.get("utm_source", lead.utm_source)
            utm_campaign = values.get("utm_campaign", lead.utm_campaign)
            values["lead_source_id"] = await resolve_lead_source(
                source_repo, utm_source, utm_campaign
            )
            # A failed lookup rolls the session back and expires the row.
            lead = await lead_repo.get_by_id(lead_id)
            if lead is None:
                raise LeadNotFoundError(f"Lead {lead_id} not found")

        # 3. Persist
        lead = await lead_repo.update_fields(lead, values)
        await lead_repo.commit()
        snapshot = LeadOut.model_validate(lead)
        logger.info("Lead %s updated: %s", lead_id, ", ".join(sorted(values)))

        # 4. Rescore; on failure the stored score and priority stand
        outcome = await self._scoring_engine.run_scoring(
            lead_id, TriggerType.ON_LEAD_UPDATE
        )
        if outcome is None:
            logger.warning("Lead %s kept its previous score after update", lead_id)
            return {"lead": snapshot, "scoring": None}

        return {
            "lead": apply_outcome(snapshot, outcome),
            "scoring": {
                "score": outcome.score,
                "priority": outcome.priority,
                "auto_recalculated": True,
            },
        }
