from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update

from app.models.lead import Lead
from app.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table."""

    async def get_by_id(self, lead_id: int) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        result = await self._db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def list_leads(
        self,
        *,
        limit: int,
        offset: int,
        destination: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> List[Lead]:
        """Newest leads first, optionally filtered."""
        query = select(Lead)
        query = self._apply_filters(query, destination, assigned_to)
        result = await self._db.execute(
            query.order_by(Lead.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_leads(
        self,
        *,
        destination: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> int:
        query = self._apply_filters(
            select(func.count()).select_from(Lead), destination, assigned_to
        )
        result = await self._db.execute(query)
        return result.scalar_one()

    @staticmethod
    def _apply_filters(query, destination: Optional[str], assigned_to: Optional[str]):
        if destination and destination != "all":
            query = query.where(Lead.destination == destination)
        if assigned_to:
            query = query.where(Lead.assigned_employee_id == assigned_to)
        return query

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and return it with its generated id."""
        return await self._insert(Lead(**kwargs))

    async def update_fields(self, lead: Lead, values: Dict[str, Any]) -> Lead:
        """Apply *values* to an existing lead instance."""
        for key, value in values.items():
            setattr(lead, key, value)
        await self._db.flush()
        await self._db.refresh(lead)
        return lead

    async def update_score(
        self, lead_id: int, score: int, priority: str, calculated_at: datetime
    ) -> None:
        """Write only the three scoring columns for a lead.

        Column-scoped so a concurrent update to unrelated lead fields is
        not overwritten by the scoring run.
        """
        await self._db.execute(
            update(Lead)
            .where(Lead.id == lead_id)
            .values(
                lead_score=score,
                lead_priority=priority,
                last_score_calculated=calculated_at,
            )
        )

    # ------------------------------------------------------------------
    # Score summary
    # ------------------------------------------------------------------

    async def score_distribution(self) -> List[Dict[str, Any]]:
        """Count, average, max and min score per priority (Hot first)."""
        priority_order = {"Hot": 1, "Warm": 2, "Cold": 3}
        result = await self._db.execute(
            select(
                Lead.lead_priority,
                func.count().label("count"),
                func.avg(Lead.lead_score).label("avg_score"),
                func.max(Lead.lead_score).label("max_score"),
                func.min(Lead.lead_score).label("min_score"),
            )
            .where(Lead.last_score_calculated.is_not(None))
            .group_by(Lead.lead_priority)
        )
        rows = [dict(row._mapping) for row in result]
        return sorted(rows, key=lambda r: priority_order.get(r["lead_priority"], 4))

    async def type_breakdown(self) -> List[Dict[str, Any]]:
        result = await self._db.execute(
            select(
                Lead.lead_type,
                Lead.lead_priority,
                func.count().label("count"),
            )
            .where(Lead.last_score_calculated.is_not(None))
            .group_by(Lead.lead_type, Lead.lead_priority)
            .order_by(Lead.lead_type, Lead.lead_priority)
        )
        return [dict(row._mapping) for row in result]

    async def top_scored(self, limit: int = 10) -> List[Lead]:
        result = await self._db.execute(
            select(Lead)
            .where(Lead.last_score_calculated.is_not(None))
            .order_by(Lead.lead_score.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
