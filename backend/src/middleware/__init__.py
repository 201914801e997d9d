"""
Middleware components for the Call Time backend.

This module provides:
- UserContext: Dataclass representing the signed-in user
- require_user: FastAPI dependency requiring an active session user
"""

from backend.src.middleware.auth import UserContext, require_user

__all__ = [
    "UserContext",
    "require_user",
]
