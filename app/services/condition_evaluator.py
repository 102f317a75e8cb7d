import logging
import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional

from app.core.constants import CATALOGUE_TAG_BY_CONDITION
from app.core.destination_catalogue import (
    DEFAULT_DESTINATION_CATALOGUE,
    DestinationCatalogue,
)
from app.schemas.common import ConditionType

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86_400
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

Clock = Callable[[], datetime]


class MatchOutcome(str, Enum):
    """Result of evaluating one condition.

    Only ``MATCHED`` counts as a match; every other outcome is a
    non-match, kept distinct so callers can log or count why.
    """

    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    MISSING_VALUE = "missing_value"
    PARSE_FAILED = "parse_failed"
    UNKNOWN_CONDITION = "unknown_condition"
    INVALID_PATTERN = "invalid_pattern"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _outcome(flag: bool) -> MatchOutcome:
    return MatchOutcome.MATCHED if flag else MatchOutcome.NOT_MATCHED


def stringify(value: Any) -> str:
    """String form of a field value used by the text conditions."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    return str(value)


def parse_float(value: Any) -> Optional[float]:
    """Parse *value* as a float, or ``None`` when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            return float(value)
        return float(str(value).strip())
    except (ValueError, ArithmeticError):
        # Decimal("sNaN") refuses float conversion
        return None


def parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of *value*, or ``None``.

    ``"30"`` and ``"30 days"`` both give 30; ``"abc"`` gives ``None``.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, ArithmeticError):
            return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date or timestamp as an aware UTC datetime.

    Date-only values are midnight UTC; naive timestamps are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ConditionEvaluator:
    """Evaluate one scoring condition against one lead field value.

    The evaluator is pure apart from its two injected collaborators: the
    destination catalogue backing ``matches_campaign`` and
    ``high_inquiry_fit``, and the clock used by ``within_days``.

    A missing field (``None``) never matches, whatever the condition,
    including ``is_empty``: only a present but blank value is empty.
    """

    def __init__(
        self,
        catalogue: Optional[DestinationCatalogue] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._catalogue = (
            catalogue if catalogue is not None else DEFAULT_DESTINATION_CATALOGUE
        )
        self._clock: Clock = clock or _utc_now
        self._handlers: Dict[str, Callable[[Any, str, str], MatchOutcome]] = {
            ConditionType.EQUALS.value: self._equals,
            ConditionType.NOT_EQUALS.value: self._not_equals,
            ConditionType.CONTAINS.value: self._contains,
            ConditionType.NOT_CONTAINS.value: self._not_contains,
            ConditionType.STARTS_WITH.value: self._starts_with,
            ConditionType.ENDS_WITH.value: self._ends_with,
            ConditionType.NOT_EMPTY.value: self._not_empty,
            ConditionType.IS_EMPTY.value: self._is_empty,
            ConditionType.CONTAINS_COMMA.value: self._contains_comma,
            ConditionType.GREATER_THAN.value: self._numeric(lambda a, b: a > b),
            ConditionType.GREATER_THAN_OR_EQUAL.value: self._numeric(
                lambda a, b: a >= b
            ),
            ConditionType.LESS_THAN.value: self._numeric(lambda a, b: a < b),
            ConditionType.LESS_THAN_OR_EQUAL.value: self._numeric(
                lambda a, b: a <= b
            ),
            ConditionType.BETWEEN.value: self._between,
            ConditionType.WITHIN_DAYS.value: self._within_days,
            ConditionType.REGEX_MATCH.value: self._regex_match,
            ConditionType.MATCHES_CAMPAIGN.value: self._in_catalogue(
                CATALOGUE_TAG_BY_CONDITION[ConditionType.MATCHES_CAMPAIGN.value]
            ),
            ConditionType.HIGH_INQUIRY_FIT.value: self._in_catalogue(
                CATALOGUE_TAG_BY_CONDITION[ConditionType.HIGH_INQUIRY_FIT.value]
            ),
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(
        self, field_value: Any, condition_type: str, condition_value: Optional[str]
    ) -> bool:
        """Return ``True`` iff the condition matches."""
        return (
            self.check(field_value, condition_type, condition_value)
            is MatchOutcome.MATCHED
        )

    def check(
        self, field_value: Any, condition_type: str, condition_value: Optional[str]
    ) -> MatchOutcome:
        """Evaluate the condition and report the named outcome."""
        if field_value is None:
            return MatchOutcome.MISSING_VALUE

        handler = self._handlers.get(condition_type)
        if handler is None:
            logger.debug("Unknown condition type %r", condition_type)
            return MatchOutcome.UNKNOWN_CONDITION

        raw_condition = condition_value or ""
        outcome = handler(field_value, stringify(field_value).lower(), raw_condition)
        if outcome is MatchOutcome.PARSE_FAILED:
            logger.debug(
                "Could not parse %r / %r for condition %s",
                field_value,
                raw_condition,
                condition_type,
            )
        return outcome

    # ------------------------------------------------------------------
    # String conditions
    # ------------------------------------------------------------------

    @staticmethod
    def _equals(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(text == condition.lower())

    @staticmethod
    def _not_equals(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(text != condition.lower())

    @staticmethod
    def _contains(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(condition.lower() in text)

    @staticmethod
    def _not_contains(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(condition.lower() not in text)

    @staticmethod
    def _starts_with(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(text.startswith(condition.lower()))

    @staticmethod
    def _ends_with(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(text.endswith(condition.lower()))

    @staticmethod
    def _not_empty(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(len(text.strip()) > 0)

    @staticmethod
    def _is_empty(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome(len(text.strip()) == 0)

    @staticmethod
    def _contains_comma(value: Any, text: str, condition: str) -> MatchOutcome:
        return _outcome("," in text)

    @staticmethod
    def _regex_match(value: Any, text: str, condition: str) -> MatchOutcome:
        try:
            pattern = re.compile(condition, re.IGNORECASE)
        except re.error:
            return MatchOutcome.INVALID_PATTERN
        return _outcome(pattern.search(text) is not None)

    def _in_catalogue(self, tag: str) -> Callable[[Any, str, str], MatchOutcome]:
        def check(value: Any, text: str, condition: str) -> MatchOutcome:
            destinations = self._catalogue.get(tag, frozenset())
            return _outcome(any(dest in text for dest in destinations))

        return check

    # ------------------------------------------------------------------
    # Numeric conditions
    # ------------------------------------------------------------------

    @staticmethod
    def _numeric(
        compare: Callable[[float, float], bool],
    ) -> Callable[[Any, str, str], MatchOutcome]:
        """Compare field and condition as floats.

        Both sides must be numeric in full, with no leading-number reading:
        ``"60000 INR"`` is a parse failure, not 60000.
        """

        def check(value: Any, text: str, condition: str) -> MatchOutcome:
            left = parse_float(value)
            right = parse_float(condition)
            if left is None or right is None:
                return MatchOutcome.PARSE_FAILED
            return _outcome(compare(left, right))

        return check

    @staticmethod
    def _between(value: Any, text: str, condition: str) -> MatchOutcome:
        parts = condition.split(",")
        if len(parts) < 2:
            return MatchOutcome.PARSE_FAILED
        low, high = parse_float(parts[0]), parse_float(parts[1])
        number = parse_float(value)
        if low is None or high is None or number is None:
            return MatchOutcome.PARSE_FAILED
        # Swapped bounds (low > high) can never match.
        return _outcome(low <= number <= high)

    # ------------------------------------------------------------------
    # Date conditions
    # ------------------------------------------------------------------

    def _within_days(self, value: Any, text: str, condition: str) -> MatchOutcome:
        window = parse_int(condition)
        target = parse_datetime(value)
        if window is None or target is None:
            return MatchOutcome.PARSE_FAILED
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        delta = (target - now).total_seconds() / _SECONDS_PER_DAY
        days_ahead = math.ceil(delta)
        return _outcome(0 <= days_ahead <= window)
