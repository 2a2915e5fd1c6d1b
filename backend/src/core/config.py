"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# backend/, which holds data/
BACKEND_DIR = Path(__file__).resolve().parents[2]


def _resolve(value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else BACKEND_DIR / path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generative model (routed through LiteLLM)
    ANTHROPIC_API_KEY: SecretStr = SecretStr("")
    LLM_MODEL: str = "anthropic/claude-sonnet-4-20250514"
    LLM_MAX_TOKENS: int = 4096
    LLM_TEMPERATURE: float = 0.2
    LLM_TIMEOUT_SECONDS: float = 45.0

    # Best-practices and client context stores
    BEST_PRACTICES_PATH: str = "data/best-practices.json"
    BEST_PRACTICES_CACHE_TTL: int = 300  # seconds, 0 disables caching
    CLIENT_CONTEXT_DIR: str = "data/client-context"

    # Validation pipeline
    LEAD_SAMPLE_SIZE: int = 20

    # Application Settings
    API_KEY: SecretStr = SecretStr("")  # empty = no bearer check
    APP_ENV: Literal["development", "staging", "production"] = "development"

    # Logging
    LOG_FORMAT: Literal["text", "json"] = "text"
    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("LEAD_SAMPLE_SIZE")
    @classmethod
    def validate_sample_size(cls, v: int) -> int:
        """Validate that the lead sample holds at least one lead."""
        if v < 1:
            raise ValueError("LEAD_SAMPLE_SIZE must be at least 1")
        return v

    @field_validator("LLM_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the model call timeout is positive."""
        if v <= 0:
            raise ValueError("LLM_TIMEOUT_SECONDS must be positive")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def best_practices_path(self) -> Path:
        """Guide file path; relative values resolve against ``BACKEND_DIR``."""
        return _resolve(self.BEST_PRACTICES_PATH)

    @property
    def client_context_dir(self) -> Path:
        """Client context directory; relative values resolve against ``BACKEND_DIR``."""
        return _resolve(self.CLIENT_CONTEXT_DIR)

    @property
    def model_configured(self) -> bool:
        """Check if the generative model credentials are configured."""
        return bool(self.ANTHROPIC_API_KEY.get_secret_value())

    @property
    def auth_enabled(self) -> bool:
        """Check if bearer-token authentication is switched on."""
        return bool(self.API_KEY.get_secret_value())

    def require_model_credentials(self) -> None:
        """Fail fast when the generative model cannot be called.

        Raises:
            ConfigurationError: If ANTHROPIC_API_KEY is missing or empty.
        """
        if not self.model_configured:
            from src.core.exceptions import ConfigurationError

            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance with validated configuration.
    """
    return Settings()


# Global settings instance - import this for easy access
settings = get_settings()
