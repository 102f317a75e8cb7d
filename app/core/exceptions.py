class TravelCRMError(Exception):
    """Base class for all lead-management domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except TravelCRMError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class LeadNotFoundError(TravelCRMError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class ScoringRuleNotFoundError(TravelCRMError):
    """Raised when a requested scoring rule does not exist."""

    def __init__(self, detail: str = "Scoring rule not found"):
        super().__init__(detail)


class InvalidLeadDataError(TravelCRMError):
    """Raised when lead data is invalid."""

    def __init__(self, detail: str = "Invalid lead data"):
        super().__init__(detail)


class InvalidScoringRuleError(TravelCRMError):
    """Raised when a scoring rule cannot be evaluated as authored.

    Covers unknown ``field_checked`` names, unknown condition types and
    malformed condition payloads (e.g. a ``between`` value that is not a
    ``min,max`` pair).
    """

    def __init__(self, detail: str = "Invalid scoring rule"):
        super().__init__(detail)


class InvalidThresholdsError(TravelCRMError):
    """Raised when the Hot threshold is below the Warm minimum."""

    def __init__(self, detail: str = "Hot threshold must be >= warm minimum"):
        super().__init__(detail)


class DatabaseNotConfiguredError(TravelCRMError):
    """Raised when a DB-backed route is hit without ``DATABASE_URL``."""

    def __init__(self, detail: str = "Database not configured"):
        super().__init__(detail)


class ScoringUnavailableError(TravelCRMError):
    """Raised when an on-demand scoring run did not complete."""

    def __init__(self, detail: str = "Lead scoring is temporarily unavailable"):
        super().__init__(detail)
