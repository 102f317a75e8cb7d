from typing import FrozenSet

from app.schemas.common import ConditionType

CONDITION_TYPES: FrozenSet[str] = frozenset(c.value for c in ConditionType)

NUMERIC_CONDITIONS: FrozenSet[str] = frozenset(
    {
        ConditionType.GREATER_THAN.value,
        ConditionType.GREATER_THAN_OR_EQUAL.value,
        ConditionType.LESS_THAN.value,
        ConditionType.LESS_THAN_OR_EQUAL.value,
    }
)

# Conditions that ignore ``condition_value`` entirely
VALUELESS_CONDITIONS: FrozenSet[str] = frozenset(
    {
        ConditionType.NOT_EMPTY.value,
        ConditionType.IS_EMPTY.value,
        ConditionType.CONTAINS_COMMA.value,
        ConditionType.MATCHES_CAMPAIGN.value,
        ConditionType.HIGH_INQUIRY_FIT.value,
    }
)

# Destination catalogue tags consumed by the catalogue-backed conditions
GROUP_CAMPAIGN_TAG: str = "group_campaign"
HIGH_INQUIRY_FIT_TAG: str = "high_inquiry_fit"

CATALOGUE_TAG_BY_CONDITION = {
    ConditionType.MATCHES_CAMPAIGN.value: GROUP_CAMPAIGN_TAG,
    ConditionType.HIGH_INQUIRY_FIT.value: HIGH_INQUIRY_FIT_TAG,
}

DEFAULT_LEAD_STATUS: str = "New"
UNCATEGORIZED_SOURCE_NAME: str = "Uncategorized Source"

AUTOMATION_ACTIONS_PATH: str = "/api/lead-scoring/automation-actions"
AUTOMATION_LOG_LIMIT: int = 50

# Redis keys for the active rule-set cache
RULES_CACHE_VERSION_KEY: str = "scoring_rules:version"
RULES_CACHE_KEY_TEMPLATE: str = "scoring_rules:v{version}:{lead_type}:{trigger}"
