"""
Authentication dependencies for API routes.

Provides:
- UserContext: the authenticated user as seen by route handlers
- require_user: FastAPI dependency that resolves the session's user

The signed session cookie (Starlette SessionMiddleware) stores the user's
GUID under "user_guid". Soft-deleted users are treated as signed out.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.models import User
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

SESSION_USER_KEY = "user_guid"


@dataclass
class UserContext:
    """
    Authenticated user for the current request.

    Attributes:
        user_id: Internal user ID (for service calls)
        user_guid: External user GUID (usr_xxx)
        user_email: Login email
    """
    user_id: int
    user_guid: str
    user_email: str


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Session expired or invalid",
    )


async def require_user(
    request: Request,
    db: Session = Depends(get_db),
) -> UserContext:
    """
    FastAPI dependency that requires a signed-in, active user.

    Raises:
        HTTPException 401: If there is no session user, the GUID is invalid,
            or the user is missing or soft-deleted

    Example:
        @router.get("/me")
        async def me(ctx: UserContext = Depends(require_user)):
            return {"guid": ctx.user_guid}
    """
    session = request.session if "session" in request.scope else {}
    user_guid = session.get(SESSION_USER_KEY)
    if not user_guid:
        raise _unauthorized()

    try:
        user_uuid = GuidService.parse_guid(user_guid, "usr")
    except ValueError:
        raise _unauthorized()

    user = db.query(User).filter(User.uuid == user_uuid).first()
    if not user or user.is_deleted:
        logger.info(f"Rejected session for inactive user {user_guid}")
        raise _unauthorized()

    return UserContext(
        user_id=user.id,
        user_guid=user.guid,
        user_email=user.email,
    )


__all__ = [
    "SESSION_USER_KEY",
    "UserContext",
    "require_user",
]
