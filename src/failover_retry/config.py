"""
Configuration settings for the failover retry scheduler.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Failover Retry"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Endpoint Pool ===
    KEYSERVER_URIS: list[str] = [
        "https://keys.openpgp.org",
        "https://keyserver.ubuntu.com",
    ]

    # === Retry Budget ===
    KEY_RESOLUTION_TIMEOUT: float = 40.0  # seconds, hard deadline per invocation
    RETRY_COUNT: int = 30  # max attempts per invocation
    RETRY_INITIAL_DELAY: float = 0.1  # seconds
    RETRY_MAXIMUM_DELAY: float = 10.0  # seconds

    # === Adaptive Timeouts ===
    INITIAL_ATTEMPT_TIMEOUT: float = 0.5  # seconds, per address
    MAX_ATTEMPT_TIMEOUT: float = 120.0  # seconds
    MIN_LOGGABLE_TIMEOUT: float = 4.0  # timeouts slower than this are logged as warnings

    # === Diagnostics ===
    SLOW_TASK_REPORT_THRESHOLD: float = 1.0  # seconds
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
