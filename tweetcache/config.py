"""
Configuration management using Pydantic Settings.
Loads environment variables and provides centralized constants.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream API Configuration
    twitter_bearer_token: str = Field(
        default="",
        description="Bearer token for the Twitter v2 API",
    )
    twitter_base_url: str = Field(
        default="https://api.twitter.com",
        description="Base URL for the Twitter v2 API",
    )
    upstream_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        description="Timeout applied to each upstream request in seconds",
    )

    # Request Defaults
    default_userid: str = Field(
        default="1472197491844026370",
        description="User id served when the request omits ?userid",
    )
    default_max_results: int = Field(
        default=6,
        ge=1,
        description="Result count forwarded upstream when ?max_results is absent or invalid",
    )

    # Cache Settings
    cache_freshness_seconds: int = Field(
        default=901,
        ge=1,
        description="Age in seconds after which a stored timeline is refreshed",
    )
    store_dir: Optional[str] = Field(
        default=None,
        description="Directory for the file-backed object store; in-memory when unset",
    )

    # Server Settings
    host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port uvicorn listens on",
    )

    # Application Constants
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("twitter_bearer_token")
    @classmethod
    def strip_bearer_token(cls, v: str) -> str:
        """Strip surrounding whitespace from the token."""
        return v.strip()

    @field_validator("twitter_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL is properly formatted."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("TWITTER_BASE_URL must start with http:// or https://")
        return v

    @field_validator("default_userid")
    @classmethod
    def validate_default_userid(cls, v: str) -> str:
        """Ensure the fallback user id is not blank."""
        if not v or v.strip() == "":
            raise ValueError("DEFAULT_USERID must not be empty")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


# Singleton instance for import
settings = get_settings()
