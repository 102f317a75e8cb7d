import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.constants import AUTOMATION_ACTIONS_PATH
from app.core.exceptions import LeadNotFoundError
from app.repositories.automation_log_repository import AutomationLogRepository
from app.repositories.lead_repository import LeadRepository
from app.schemas.common import LeadPriority

logger = logging.getLogger(__name__)

# Warm-lead reminders and follow-ups land 36 hours out (inside 24-48 h).
_WARM_FOLLOW_UP_DELAY = timedelta(hours=36)


class AutomationNotifier:
    """Fire-and-forget POST to the automation-actions endpoint.

    Used by the lead-capture flow when a new lead scores Hot.  Failures
    are logged and reported as ``False``; there is no retry.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.AUTOMATION_BASE_URL).rstrip("/")
        self._timeout = (
            timeout if timeout is not None else settings.AUTOMATION_TIMEOUT_SECONDS
        )
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self._base_url}{AUTOMATION_ACTIONS_PATH}"

    async def notify(self, lead_id: int, priority: str, score: int) -> bool:
        payload = {"lead_id": lead_id, "priority": priority, "score": score}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("Automation call for lead %s timed out: %s", lead_id, self.url)
            return False
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Automation endpoint returned %s for lead %s",
                exc.response.status_code,
                lead_id,
            )
            return False
        except httpx.HTTPError as exc:
            logger.error(
                "Automation endpoint unreachable for lead %s: %s (%s)",
                lead_id,
                self.url,
                exc,
            )
            return False

        logger.info("Hot lead %s: automation actions triggered", lead_id)
        return True


@dataclass(frozen=True)
class AutomationAction:
    code: str
    action: str
    status: str
    message: str
    priority: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def log_entry(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "status": self.status,
            "message": self.message,
            "priority": self.priority,
            **self.extra,
        }


def plan_actions(lead: Any, priority: LeadPriority, now: datetime) -> List[AutomationAction]:
    """Return the automation actions a lead of *priority* should receive."""
    if priority is LeadPriority.HOT:
        actions = [
            AutomationAction(
                "send_whatsapp_instant",
                "WhatsApp Instant Message",
                "queued",
                "Sending instant WhatsApp welcome message",
                "high",
                {"lead_name": lead.name, "lead_phone": lead.phone},
            ),
            AutomationAction(
                "send_email_quote_summary",
                "Email Quote Summary",
                "queued",
                "Sending email quote summary",
                "high",
                {"lead_email": lead.email},
            ),
        ]
        if lead.lead_type == "FIT":
            actions.append(
                AutomationAction(
                    "notify_fit_consultant",
                    "Notify FIT Consultant",
                    "queued",
                    "Notifying FIT consultant for same-day follow-up",
                    "urgent",
                    {"assigned_to": lead.assigned_employee_name or "Unassigned"},
                )
            )
        actions.append(
            AutomationAction(
                "create_task_immediate",
                "Create Immediate Task",
                "queued",
                "Creating follow-up task for today",
                "high",
                {"due_date": now.isoformat()},
            )
        )
        return actions

    if priority is LeadPriority.WARM:
        due = (now + _WARM_FOLLOW_UP_DELAY).isoformat()
        return [
            AutomationAction(
                "schedule_whatsapp_reminder",
                "Schedule WhatsApp Reminder",
                "scheduled",
                "WhatsApp reminder scheduled",
                "medium",
                {"scheduled_for": due},
            ),
            AutomationAction(
                "schedule_task_24_48h",
                "Schedule Follow-Up Task",
                "scheduled",
                "Follow-up task scheduled for 24-48 hours",
                "medium",
                {"due_date": due},
            ),
        ]

    return [
        AutomationAction(
            "move_to_low_priority",
            "Move to Low Priority View",
            "completed",
            "Lead moved to low priority view",
            "low",
        ),
        AutomationAction(
            "add_to_nurture_campaign",
            "Add to Nurture Campaign",
            "queued",
            "Adding to slow nurture email campaign",
            "low",
            {"campaign_type": "monthly_broadcast"},
        ),
        AutomationAction(
            "add_to_broadcast_list",
            "Add to Monthly Broadcast",
            "queued",
            "Added to monthly broadcast list",
            "low",
        ),
    ]


class AutomationActionService:
    """Runs the priority-specific automation actions for a lead.

    Every action is recorded in ``automation_log``.  Writing the log is
    best-effort: a failure is logged and the actions are still reported.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        log_repo: AutomationLogRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._lead_repo = lead_repo
        self._log_repo = log_repo
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def trigger(
        self, lead_id: int, priority: LeadPriority, score: Optional[int]
    ) -> Dict[str, Any]:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")

        actions = plan_actions(lead, priority, self._clock())
        log_entries = [action.log_entry() for action in actions]
        await self._record(lead_id, actions, log_entries)

        return {
            "success": True,
            "lead_id": lead_id,
            "lead_name": lead.name,
            "priority": priority.value,
            "score": score,
            "actions_triggered": [action.code for action in actions],
            "automation_log": log_entries,
            "message": (
                f"{len(actions)} automation actions triggered "
                f"for {priority.value} lead"
            ),
        }

    async def get_log(self, lead_id: int) -> list:
        return await self._log_repo.list_for_lead(lead_id)

    async def _record(
        self,
        lead_id: int,
        actions: List[AutomationAction],
        log_entries: List[Dict[str, Any]],
    ) -> None:
        try:
            for action, entry in zip(actions, log_entries):
                await self._log_repo.create(
                    lead_id=lead_id,
                    action_type=action.action,
                    status=action.status,
                    message=action.message,
                    priority=action.priority,
                    details=entry,
                )
            await self._log_repo.commit()
        except Exception:
            logger.warning(
                "Could not write automation log for lead %s", lead_id, exc_info=True
            )
            await self._log_repo.rollback()
