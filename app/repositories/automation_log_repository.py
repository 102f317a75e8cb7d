from typing import Any, Dict, List, Optional

from sqlalchemy import select

from app.core.constants import AUTOMATION_LOG_LIMIT
from app.models.automation_log import AutomationLog
from app.repositories.base import BaseRepository


class AutomationLogRepository(BaseRepository):
    """Encapsulates queries against the ``automation_log`` table."""

    async def create(
        self,
        *,
        lead_id: int,
        action_type: str,
        status: str,
        message: Optional[str],
        priority: str,
        details: Dict[str, Any],
    ) -> AutomationLog:
        entry = AutomationLog(
            lead_id=lead_id,
            action_type=action_type,
            status=status,
            message=message,
            priority=priority,
            details=details,
        )
        self._db.add(entry)
        return entry

    async def list_for_lead(
        self, lead_id: int, limit: int = AUTOMATION_LOG_LIMIT
    ) -> List[AutomationLog]:
        """Most recent entries first."""
        result = await self._db.execute(
            select(AutomationLog)
            .where(AutomationLog.lead_id == lead_id)
            .order_by(AutomationLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
