from dataclasses import dataclass

from app.core.exceptions import InvalidThresholdsError
from app.schemas.common import LeadPriority


@dataclass(frozen=True)
class PriorityThresholds:
    """Hot and Warm cut-offs of a rule set.

    Raises ``InvalidThresholdsError`` when ``hot < warm_min``, which
    would make the Warm tier unreachable.
    """

    hot: int
    warm_min: int

    def __post_init__(self) -> None:
        if self.hot < self.warm_min:
            raise InvalidThresholdsError(
                f"Hot threshold ({self.hot}) must be >= "
                f"warm minimum ({self.warm_min})"
            )

    def classify(self, total_score: int) -> LeadPriority:
        if total_score >= self.hot:
            return LeadPriority.HOT
        if total_score >= self.warm_min:
            return LeadPriority.WARM
        return LeadPriority.COLD


def classify_priority(
    total_score: int, hot_threshold: int, warm_min_threshold: int
) -> LeadPriority:
    return PriorityThresholds(hot_threshold, warm_min_threshold).classify(total_score)
