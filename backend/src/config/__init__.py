"""
Configuration module for the Call Time backend.

Provides centralized configuration for:
- Application settings (grace window, invite codes, CORS)
- Session management
"""

from backend.src.config.settings import AppSettings, get_settings
from backend.src.config.session import SessionSettings, get_session_settings

__all__ = [
    "AppSettings",
    "get_settings",
    "SessionSettings",
    "get_session_settings",
]
