"""
Application settings configuration for Call Time.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        CALLTIME_ACCOUNT_GRACE_DAYS: Days a soft-deleted account can still be
            reactivated by signing in again (default: 30)
        CALLTIME_INVITE_CODE_ATTEMPTS: How many invite codes to try before giving
            up on a collision streak (default: 5)
        CALLTIME_CORS_ORIGINS: Comma-separated origins allowed by CORS
            (default: local frontend dev servers)
    """

    account_reactivation_grace_days: int = Field(
        default=30,
        validation_alias="CALLTIME_ACCOUNT_GRACE_DAYS",
        ge=1,
        le=365,
        description="Grace window in days during which a deleted account can be reactivated"
    )

    invite_code_max_attempts: int = Field(
        default=5,
        validation_alias="CALLTIME_INVITE_CODE_ATTEMPTS",
        ge=1,
        le=20,
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="CALLTIME_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins"
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: str) -> str:
        """Reject wildcard origins; the session cookie requires credentials."""
        if "*" in v:
            raise ValueError("CALLTIME_CORS_ORIGINS cannot contain '*' when credentials are allowed")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Configured CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
