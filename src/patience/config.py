"""
Configuration settings for Patience.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from patience.models.policies import ReAttemptPolicy, RetryPolicy


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PATIENCE_",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry (tier 1) defaults ===
    RETRY_MAX_ATTEMPTS: int = 2
    RETRY_INTERVAL: float = 0.1  # seconds
    RETRY_INTERVAL_MULTIPLIER: float = 1.0

    # === Re-attempt (tier 2) defaults ===
    REATTEMPT_MAX_ATTEMPTS: int = 3
    REATTEMPT_INTERVAL: float = 1.0  # seconds
    REATTEMPT_INTERVAL_MULTIPLIER: float = 1.0

    # === HTTP executor ===
    HTTP_TIMEOUT: float = 30.0  # seconds
    HTTP_MAX_CONNECTIONS: int = 10

    def retry_defaults(self) -> RetryPolicy:
        """Default tier-1 policy used by the policy resolver."""
        return RetryPolicy(
            max_attempts=self.RETRY_MAX_ATTEMPTS,
            interval=self.RETRY_INTERVAL,
            interval_multiplier=self.RETRY_INTERVAL_MULTIPLIER,
        )

    def re_attempt_defaults(self) -> ReAttemptPolicy:
        """Default tier-2 policy used by the policy resolver."""
        return ReAttemptPolicy(
            max_attempts=self.REATTEMPT_MAX_ATTEMPTS,
            interval=self.REATTEMPT_INTERVAL,
            interval_multiplier=self.REATTEMPT_INTERVAL_MULTIPLIER,
        )


# Global settings instance
settings = Settings()
