"""
User service for managing accounts.

Provides business logic for creating and retrieving users, and the
re-authentication policy for soft-deleted accounts.

Design:
- Email is globally unique, compared case-insensitively
- Soft-deleted users keep their row (content still references it)
- A soft-deleted user who signs in again within the grace window is
  reactivated; after the window the account stays closed
"""

import re
from datetime import datetime, timedelta
from typing import Optional, List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func

from backend.src.config.settings import get_settings
from backend.src.models import User
from backend.src.utils.logging_config import get_logger
from backend.src.services.exceptions import (
    AccountClosedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.guid import GuidService


logger = get_logger("services")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService:
    """
    Service for managing users.

    Usage:
        >>> service = UserService(db_session)
        >>> user = service.create(email="ada@example.com", name="Ada")
        >>> print(user.guid)  # usr_01hgw2bbg...
    """

    def __init__(self, db: Session, grace_days: Optional[int] = None):
        """
        Initialize user service.

        Args:
            db: SQLAlchemy database session
            grace_days: Reactivation window override (defaults to settings)
        """
        self.db = db
        self.grace_days = (
            grace_days if grace_days is not None
            else get_settings().account_reactivation_grace_days
        )

    def create(
        self,
        email: str,
        name: str,
        timezone: Optional[str] = None,
        email_verified: bool = False,
    ) -> User:
        """
        Create a new user.

        Args:
            email: Email address (must be globally unique)
            name: Display name
            timezone: Optional IANA timezone name
            email_verified: Whether the email is already verified (OAuth signups)

        Returns:
            Created User instance

        Raises:
            ConflictError: If email already exists
            ValidationError: If email or name is invalid
        """
        if not email or not email.strip():
            raise ValidationError("Email cannot be empty", field="email")

        email = email.strip().lower()
        if len(email) > 255:
            raise ValidationError("Email cannot exceed 255 characters", field="email")
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email format: {email}", field="email")

        if not name or not name.strip():
            raise ValidationError("Name cannot be empty", field="name")
        name = name.strip()
        if len(name) > 255:
            raise ValidationError("Name cannot exceed 255 characters", field="name")

        if self.get_by_email(email):
            raise ConflictError(f"User with email '{email}' already exists")

        try:
            user = User(
                email=email,
                name=name,
                timezone=timezone,
                email_verified=email_verified,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)

            logger.info(f"Created user: {user.email} ({user.guid})")
            return user

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to create user '{email}': {e}")
            raise ConflictError(f"User with email '{email}' already exists")

    def get_by_id(self, user_id: int) -> User:
        """
        Get a user by internal ID, including soft-deleted users.

        Raises:
            NotFoundError: If user not found
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_by_guid(self, guid: str) -> User:
        """
        Get a user by GUID, including soft-deleted users.

        Raises:
            NotFoundError: If the GUID is malformed or the user is not found
        """
        try:
            uuid_value = GuidService.parse_guid(guid, "usr")
        except ValueError:
            raise NotFoundError("User", guid)

        user = self.db.query(User).filter(User.uuid == uuid_value).first()
        if not user:
            raise NotFoundError("User", guid)
        return user

    def get_active_by_guid(self, guid: str) -> User:
        """
        Get a user by GUID, treating soft-deleted users as missing.

        Raises:
            NotFoundError: If not found or soft-deleted
        """
        user = self.get_by_guid(guid)
        if user.is_deleted:
            raise NotFoundError("User", guid)
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Get a user by email address (case-insensitive).

        Soft-deleted users are returned too; their email stays reserved.
        """
        if not email:
            return None
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def reactivate_on_login(self, user: User, now: Optional[datetime] = None) -> User:
        """
        Apply the re-authentication policy to a user who just proved identity.

        Active users are returned unchanged. A soft-deleted user within the
        grace window is reactivated (deleted_at cleared). Past the window the
        sign-in is refused.

        Args:
            user: Authenticated user
            now: Current time (defaults to utcnow)

        Returns:
            The (possibly reactivated) user

        Raises:
            AccountClosedError: If the grace window has elapsed
        """
        if not user.is_deleted:
            return user

        now = now or datetime.utcnow()
        if now - user.deleted_at > timedelta(days=self.grace_days):
            logger.warning(
                "Refused sign-in for closed account",
                extra={"user_guid": user.guid, "deleted_at": user.deleted_at.isoformat()},
            )
            raise AccountClosedError(user.guid, user.deleted_at)

        user.deleted_at = None
        user.updated_at = now
        self.db.commit()
        self.db.refresh(user)

        logger.info("Account reactivated", extra={"user_guid": user.guid})
        return user

    def purge_candidates(self, now: Optional[datetime] = None) -> List[User]:
        """
        List soft-deleted users whose grace window has elapsed.

        Read-only; an external job decides what to do with them.
        """
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=self.grace_days)
        return (
            self.db.query(User)
            .filter(User.deleted_at.isnot(None))
            .filter(User.deleted_at < cutoff)
            .order_by(User.deleted_at.asc())
            .all()
        )
