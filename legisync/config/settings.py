"""
Application settings using Pydantic Settings.

Environment variables are loaded from .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Create a .env file in the project root with these values.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ========================================================================
    # Database
    # ========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "legisync"
    MONGODB_TIMEOUT: float = 10.0

    # ========================================================================
    # Congress.gov API
    # ========================================================================

    # Get a key at: https://api.congress.gov/sign-up/
    CONGRESS_GOV_API_KEY: Optional[str] = None
    CONGRESS_GOV_BASE_URL: str = "https://api.congress.gov/v3"
    CONGRESS_GOV_TIMEOUT: float = 30.0

    # Token bucket: refill rate (requests/hour) and burst capacity
    CONGRESS_GOV_RATE_LIMIT: int = 1000
    CONGRESS_GOV_BURST_CAPACITY: int = 100
    RATE_LIMIT_ACQUIRE_TIMEOUT: float = 60.0

    # Retry with exponential backoff (seconds)
    RETRY_MAX_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 30.0
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    RETRY_MAX_RETRY_AFTER: float = 300.0

    # ========================================================================
    # Sync
    # ========================================================================
    SYNC_BATCH_SIZE: int = 50
    SYNC_PAGE_SIZE: int = 250
    SYNC_INTERVAL_SECONDS: float = 15 * 60

    # Circuit breakers
    SYNC_MAX_CONSECUTIVE_PAGE_ERRORS: int = 3
    SYNC_MAX_TOTAL_ERRORS: int = 100

    # ========================================================================
    # Logging
    # ========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ========================================================================
    # Application
    # ========================================================================
    APP_NAME: str = "LegiSync"
    APP_VERSION: str = "0.1.0"

    # Environment (development, staging, production)
    ENVIRONMENT: str = "development"


# Singleton instance
settings = Settings()
