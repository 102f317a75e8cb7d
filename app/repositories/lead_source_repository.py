import logging
from typing import Optional

from sqlalchemy import func, or_, select

from app.core.constants import UNCATEGORIZED_SOURCE_NAME
from app.models.lead_source import LeadSourceDetailed
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE = "Active"


def _normalised(column):
    return func.lower(func.trim(column))


class LeadSourceRepository(BaseRepository):
    """Encapsulates queries against the ``lead_source_detailed`` table."""

    async def find_matching_source_id(
        self, utm_source: str, utm_campaign: str = ""
    ) -> Optional[int]:
        """Resolve the lead source a set of UTM tags belongs to.

        Tries, in order: an exact source+campaign match, a source-only
        row with no campaign, then the ``Uncategorized Source`` row.
        Comparisons ignore case and surrounding whitespace.
        """
        if not utm_source:
            return None

        source = utm_source.strip().lower()
        campaign = (utm_campaign or "").strip().lower()

        if campaign:
            result = await self._db.execute(
                select(LeadSourceDetailed.id)
                .where(
                    _normalised(LeadSourceDetailed.utm_source) == source,
                    _normalised(LeadSourceDetailed.utm_campaign) == campaign,
                    LeadSourceDetailed.status == _ACTIVE,
                )
                .limit(1)
            )
            exact = result.scalar_one_or_none()
            if exact is not None:
                return exact

        result = await self._db.execute(
            select(LeadSourceDetailed.id)
            .where(
                _normalised(LeadSourceDetailed.utm_source) == source,
                or_(
                    LeadSourceDetailed.utm_campaign == "",
                    LeadSourceDetailed.utm_campaign.is_(None),
                ),
                LeadSourceDetailed.status == _ACTIVE,
            )
            .limit(1)
        )
        source_only = result.scalar_one_or_none()
        if source_only is not None:
            return source_only

        result = await self._db.execute(
            select(LeadSourceDetailed.id)
            .where(LeadSourceDetailed.source_name == UNCATEGORIZED_SOURCE_NAME)
            .limit(1)
        )
        return result.scalar_one_or_none()
