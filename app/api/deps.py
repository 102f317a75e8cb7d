"""API-layer dependency functions.

Re-exports all dependency factories from ``app.dependencies`` so that
endpoint modules only need to import from ``app.api.deps``.
"""

from app.dependencies import (
    # Repository factories
    get_lead_repo,
    get_source_repo,
    get_scoring_rule_repo,
    get_automation_log_repo,
    # Service factories
    get_scoring_engine,
    get_lead_capture_service,
    get_lead_update_service,
    get_score_service,
    get_scoring_rule_service,
    get_automation_action_service,
    get_automation_notifier,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_lead_repo",
    "get_source_repo",
    "get_scoring_rule_repo",
    "get_automation_log_repo",
    "get_scoring_engine",
    "get_lead_capture_service",
    "get_lead_update_service",
    "get_score_service",
    "get_scoring_rule_service",
    "get_automation_action_service",
    "get_automation_notifier",
    "get_redis_client",
    "get_cache_service",
]
