from enum import Enum
from pydantic import BaseModel


class LeadPriority(str, Enum):
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"


class TriggerType(str, Enum):
    """Lifecycle event a scoring run is executed for."""

    ON_LEAD_CREATE = "On Lead Create"
    ON_LEAD_UPDATE = "On Lead Update"


class AutomationTrigger(str, Enum):
    """Trigger eligibility stored on a scoring rule."""

    ON_LEAD_CREATE = "On Lead Create"
    ON_LEAD_UPDATE = "On Lead Update"
    BOTH = "Both"


class ConditionType(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    NOT_EMPTY = "not_empty"
    IS_EMPTY = "is_empty"
    CONTAINS_COMMA = "contains_comma"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    WITHIN_DAYS = "within_days"
    REGEX_MATCH = "regex_match"
    MATCHES_CAMPAIGN = "matches_campaign"
    HIGH_INQUIRY_FIT = "high_inquiry_fit"


class RuleStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
