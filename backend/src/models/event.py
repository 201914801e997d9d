"""
Event model for rehearsals, shows and other scheduled gatherings.

Events belong to exactly one group and may have been created from an
availability request. Deleting the group deletes its events; deleting the
originating request only clears created_from_request_id.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class EventType(enum.Enum):
    """Kind of event."""
    REHEARSAL = "rehearsal"
    SHOW = "show"
    OTHER = "other"


class Event(Base, GuidMixin):
    """
    Scheduled event in a group.

    Attributes:
        id: Primary key (internal)
        uuid/guid: External identifier (evt_xxx)
        group_id: Owning group (FK, cascade on group delete)
        title: Event title
        description: Optional details
        event_type: rehearsal, show or other
        start_time: Start timestamp
        end_time: End timestamp
        location: Optional free-text location
        call_time: Optional time performers must arrive
        created_by_id: Attributed author (FK to users)
        created_from_request_id: Availability request this event came from
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Indexes:
        - (group_id, start_time) for calendar queries
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_group_start_time", "group_id", "start_time"),
    )

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    group_id = Column(
        Integer,
        ForeignKey("groups.id", name="fk_events_group_id", ondelete="CASCADE"),
        nullable=False
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(
        Enum(
            EventType,
            name="event_type",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        default=EventType.OTHER,
        nullable=False
    )
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    location = Column(String(500), nullable=True)
    call_time = Column(DateTime, nullable=True)

    created_by_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_events_created_by_id"),
        nullable=False,
        index=True
    )
    created_from_request_id = Column(
        Integer,
        ForeignKey(
            "availability_requests.id",
            name="fk_events_created_from_request_id",
            ondelete="SET NULL"
        ),
        nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    group = relationship("Group", back_populates="events")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="select")
    assignments = relationship(
        "EventAssignment",
        back_populates="event",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"group_id={self.group_id}, "
            f"title='{self.title}', "
            f"type={self.event_type.value if self.event_type else None}"
            f")>"
        )

    def __str__(self) -> str:
        return self.title
