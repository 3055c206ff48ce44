"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine runtime settings loaded from environment variables.

    All settings can be overridden via environment variables
    or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    debug: bool = False

    # External enrichment source ("applicant" derives signals locally, "http" calls the API)
    enrichment_source: str = "applicant"
    enrichment_api_url: str = "http://localhost:8001"
    enrichment_timeout: float = 2.0

    # Rate limiting (enrichment calls)
    rate_limit_max_calls: int = 100
    rate_limit_window_seconds: float = 60.0

    # Circuit breaker (enrichment calls)
    circuit_failure_threshold: int = 3
    circuit_reset_timeout_seconds: float = 300.0
    circuit_hysteresis_delay_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
