"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RetryPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Generation endpoint
    ai_provider: Literal["openai", "gemini"] = Field(default="openai")
    ai_request_timeout: float = Field(default=60.0, description="Seconds per round trip")

    # OpenAI
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openai_model: str = Field(default="gpt-4o-mini")
    openai_base_url: str = Field(
        default="", description="OpenAI-compatible base URL (empty for the default)"
    )

    # Gemini
    gemini_api_key: SecretStr = Field(default=SecretStr(""))
    gemini_model: str = Field(default="gemini-2.0-flash")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")

    # Sampling
    analysis_temperature: float = Field(default=0.2)
    matching_temperature: float = Field(default=0.3)
    ai_top_p: float = Field(default=0.9)

    # Retry policy
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0, description="Seconds before 2nd attempt")
    retry_backoff_multiplier: float = Field(default=2.0, ge=1)

    # CV analysis
    analysis_strict_fields: bool = Field(
        default=True, description="Reject fields outside the recognized vocabulary"
    )

    # Matcher
    matcher_max_concurrency: int = Field(
        default=4, ge=1, description="Candidates scored concurrently in a batch"
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy built from the retry_* settings."""
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay=self.retry_base_delay,
            backoff_multiplier=self.retry_backoff_multiplier,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
