"""Registry of lead fields that scoring rules may reference.

Rules name a lead attribute in ``field_checked``.  Instead of reading
arbitrary attributes off the lead, every scorable field is declared here
with an extractor that works on both a ``Lead`` row and a plain mapping
(the unsaved payload scored by the preview endpoint).  Rule authoring
rejects names that are not registered.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

FieldExtractor = Callable[[Any], Any]


def _raw(lead: Any, name: str) -> Any:
    if isinstance(lead, Mapping):
        return lead.get(name)
    return getattr(lead, name, None)


def _text(name: str) -> FieldExtractor:
    def extract(lead: Any) -> Optional[str]:
        value = _raw(lead, name)
        return None if value is None else str(value)

    return extract


def _number(name: str) -> FieldExtractor:
    """Numbers stay numeric when possible; unparsable text is passed through
    so the evaluator can report it as a parse failure."""

    def extract(lead: Any) -> Any:
        value = _raw(lead, name)
        if value is None or isinstance(value, (int, float, Decimal)):
            return value
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            return value

    return extract


def _date(name: str) -> FieldExtractor:
    def extract(lead: Any) -> Any:
        value = _raw(lead, name)
        if value is None or isinstance(value, (date, datetime)):
            return value
        return str(value)

    return extract


LEAD_FIELD_EXTRACTORS: Dict[str, FieldExtractor] = {
    "name": _text("name"),
    "email": _text("email"),
    "phone": _text("phone"),
    "number_of_travelers": _number("number_of_travelers"),
    "travel_dates": _text("travel_dates"),
    "travel_date": _date("travel_date"),
    "source": _text("source"),
    "destination": _text("destination"),
    "custom_notes": _text("custom_notes"),
    "utm_source": _text("utm_source"),
    "utm_medium": _text("utm_medium"),
    "utm_campaign": _text("utm_campaign"),
    "lead_type": _text("lead_type"),
    "budget": _number("budget"),
    "budget_per_person": _number("budget_per_person"),
    "status": _text("status"),
    "assigned_employee_name": _text("assigned_employee_name"),
    "response_time_hours": _number("response_time_hours"),
    "itinerary_created_hours": _number("itinerary_created_hours"),
}

SCORABLE_LEAD_FIELDS: FrozenSet[str] = frozenset(LEAD_FIELD_EXTRACTORS)


def is_scorable_field(name: str) -> bool:
    return name in LEAD_FIELD_EXTRACTORS


def extract_field(lead: Any, name: str) -> Any:
    """Return the typed value of *name* on *lead*, or ``None``.

    Unregistered names resolve to ``None`` so that legacy rules pointing
    at removed fields simply never match.
    """
    extractor = LEAD_FIELD_EXTRACTORS.get(name)
    if extractor is None:
        return None
    return extractor(lead)
