"""
Availability response model: one member's answers to one availability request.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class AvailabilityResponseValue(enum.Enum):
    """Answer for a single requested date."""
    AVAILABLE = "available"
    MAYBE = "maybe"
    NOT_AVAILABLE = "not_available"


class AvailabilityResponse(Base, GuidMixin):
    """
    A member's response to an availability request.

    Attributes:
        id: Primary key (internal)
        uuid/guid: External identifier (avs_xxx)
        request_id: Answered request (FK, cascade on request delete)
        user_id: Responding user (FK, cascade on user delete)
        responses: Mapping of ISO date to an AvailabilityResponseValue value
        responded_at: First response timestamp
        updated_at: Last change timestamp

    Constraints:
        - (request_id, user_id) is unique
    """

    __tablename__ = "availability_responses"
    __table_args__ = (
        UniqueConstraint("request_id", "user_id", name="uq_availability_responses_request_user"),
    )

    GUID_PREFIX = "avs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    request_id = Column(
        Integer,
        ForeignKey(
            "availability_requests.id",
            name="fk_availability_responses_request_id",
            ondelete="CASCADE"
        ),
        nullable=False,
        index=True
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_availability_responses_user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    responses = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False, default=dict)

    responded_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    request = relationship("AvailabilityRequest", back_populates="responses")
    user = relationship("User", lazy="select")

    def __repr__(self) -> str:
        return (
            f"<AvailabilityResponse("
            f"request_id={self.request_id}, "
            f"user_id={self.user_id}"
            f")>"
        )
