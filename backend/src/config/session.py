"""
Session cookie configuration for Call Time.

Uses Starlette's SessionMiddleware with signed cookies. The session only
carries the signed-in user's GUID; everything else is looked up per request.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class SessionSettings(BaseSettings):
    """
    Session configuration loaded from environment variables.

    Environment Variables:
        SESSION_SECRET_KEY: Secret key for signing session cookies (required in production)
        SESSION_MAX_AGE: Session duration in seconds (default: 7 days)
        SESSION_COOKIE_NAME: Name of the session cookie
        SESSION_SAME_SITE: SameSite cookie attribute (lax, strict, none)
        SESSION_HTTPS_ONLY: Whether to require HTTPS for cookies
    """

    session_secret_key: str = Field(
        default="",
        validation_alias="SESSION_SECRET_KEY",
        description="Secret key for signing session cookies. Must be at least 32 bytes."
    )

    session_max_age: int = Field(
        default=7 * 24 * 60 * 60,
        validation_alias="SESSION_MAX_AGE",
        ge=60,
        le=30 * 24 * 60 * 60,
    )

    session_cookie_name: str = Field(
        default="calltime_session",
        validation_alias="SESSION_COOKIE_NAME"
    )

    session_same_site: Literal["lax", "strict", "none"] = Field(
        default="lax",
        validation_alias="SESSION_SAME_SITE"
    )

    session_https_only: bool = Field(
        default=False,  # Set to True in production
        validation_alias="SESSION_HTTPS_ONLY"
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("session_secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate that secret key is sufficiently long."""
        if v and len(v) < 32:
            raise ValueError("SESSION_SECRET_KEY must be at least 32 characters")
        return v

    @property
    def is_configured(self) -> bool:
        """Check if session is properly configured."""
        return bool(self.session_secret_key)


@lru_cache()
def get_session_settings() -> SessionSettings:
    """
    Get cached session settings instance.

    Returns:
        SessionSettings: Configured session settings from environment
    """
    return SessionSettings()
