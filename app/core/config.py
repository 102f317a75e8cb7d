from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Left unset, every DB-backed route answers 503 and scoring is skipped.
    DATABASE_URL: Optional[str] = None
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis configuration for the active rule-set cache
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_RULES_CACHE_TTL: int = 300  # 5 minutes

    # CORS configuration: comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Automation endpoint that receives Hot-lead notifications
    AUTOMATION_BASE_URL: str = "http://localhost:8000"
    AUTOMATION_TIMEOUT_SECONDS: float = 5.0

    # Scoring engine
    SCORING_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_LEAD_TYPE: str = "FIT"
    DEFAULT_HOT_THRESHOLD: int = 40
    DEFAULT_WARM_MIN_THRESHOLD: int = 25
    DESTINATION_CATALOGUE_PATH: str = ""

    LEAD_CAPTURE_RATE_LIMIT: str = "30/minute"


settings = Settings()
