"""
Availability request model.

An availability request is a poll sent to a group asking members which of
a set of dates they can make. Members answer with AvailabilityResponse rows;
admins may later turn the results into Events.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class AvailabilityStatus(enum.Enum):
    """Whether a request still accepts responses."""
    OPEN = "open"
    CLOSED = "closed"


class AvailabilityRequest(Base, GuidMixin):
    """
    Availability poll scoped to one group.

    Attributes:
        id: Primary key (internal)
        uuid/guid: External identifier (avr_xxx)
        group_id: Owning group (FK, cascade on group delete)
        title: Short title
        description: Optional details
        date_range_start: First date covered by the poll
        date_range_end: Last date covered by the poll
        requested_dates: ISO dates (YYYY-MM-DD) members are asked about
        requested_start_time: Optional HH:MM start
        requested_end_time: Optional HH:MM end
        status: open or closed
        created_by_id: Attributed author (FK to users)
        created_at: Creation timestamp
        expires_at: Optional automatic close time
    """

    __tablename__ = "availability_requests"

    GUID_PREFIX = "avr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    group_id = Column(
        Integer,
        ForeignKey("groups.id", name="fk_availability_requests_group_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date_range_start = Column(DateTime, nullable=False)
    date_range_end = Column(DateTime, nullable=False)
    requested_dates = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False, default=list)
    requested_start_time = Column(String(5), nullable=True)
    requested_end_time = Column(String(5), nullable=True)

    status = Column(
        Enum(
            AvailabilityStatus,
            name="availability_status",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        default=AvailabilityStatus.OPEN,
        nullable=False
    )

    created_by_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_availability_requests_created_by_id"),
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    group = relationship("Group", back_populates="availability_requests")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="select")
    responses = relationship(
        "AvailabilityResponse",
        back_populates="request",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilityRequest("
            f"id={self.id}, "
            f"group_id={self.group_id}, "
            f"title='{self.title}'"
            f")>"
        )
