import logging
from typing import Any, Dict

from app.core.exceptions import LeadNotFoundError, ScoringUnavailableError
from app.repositories.lead_repository import LeadRepository
from app.schemas.lead import CalculateScoreRequest
from app.services.lead_scoring import LeadScoringEngine, ScoringOutcome

logger = logging.getLogger(__name__)


def _outcome_payload(outcome: ScoringOutcome) -> Dict[str, Any]:
    return {
        "success": True,
        "total_score": outcome.score,
        "priority": outcome.priority,
        "matched_rules": [
            {
                "rule_id": match.rule_id,
                "rule_name": match.rule_name,
                "score_added": match.score_added,
                "field_checked": match.field_checked,
                "field_value": match.field_value,
            }
            for match in outcome.matched_rules
        ],
        "rules_evaluated": outcome.rules_evaluated,
        "calculated_at": outcome.calculated_at,
    }


class ScoreService:
    """On-demand scoring and the score summary report."""

    def __init__(
        self, scoring_engine: LeadScoringEngine, lead_repo: LeadRepository
    ) -> None:
        self._scoring_engine = scoring_engine
        self._lead_repo = lead_repo

    async def calculate(self, request: CalculateScoreRequest) -> Dict[str, Any]:
        """Rescore a stored lead, or preview the score of unsaved data.

        A stored lead is scored with the same run used on create and
        update, so its new score is persisted.  ``lead_data`` is only
        evaluated.
        """
        if request.lead_id is None:
            outcome = await self._scoring_engine.preview(
                request.lead_data, request.trigger_type
            )
            return {"lead_id": None, **_outcome_payload(outcome)}

        if await self._lead_repo.get_by_id(request.lead_id) is None:
            raise LeadNotFoundError(f"Lead {request.lead_id} not found")

        outcome = await self._scoring_engine.run_scoring(
            request.lead_id, request.trigger_type
        )
        if outcome is None:
            raise ScoringUnavailableError(
                f"Scoring lead {request.lead_id} did not complete"
            )
        return {"lead_id": request.lead_id, **_outcome_payload(outcome)}

    async def summary(self) -> Dict[str, Any]:
        distribution = await self._lead_repo.score_distribution()
        return {
            "score_distribution": [
                {
                    "priority": row["lead_priority"],
                    "count": row["count"],
                    "avg_score": round(float(row["avg_score"] or 0), 2),
                    "max_score": row["max_score"] or 0,
                    "min_score": row["min_score"] or 0,
                }
                for row in distribution
            ],
            "type_breakdown": [
                {
                    "lead_type": row["lead_type"],
                    "priority": row["lead_priority"],
                    "count": row["count"],
                }
                for row in await self._lead_repo.type_breakdown()
            ],
            "top_leads": await self._lead_repo.top_scored(),
        }
