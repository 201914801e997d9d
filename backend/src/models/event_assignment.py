"""
Event assignment: a user cast in an event, with a confirmation status.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class AssignmentStatus(enum.Enum):
    """Confirmation state of an assignment."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class EventAssignment(Base, GuidMixin):
    """
    Assignment of a user to an event.

    Attributes:
        id: Primary key (internal)
        uuid/guid: External identifier (asg_xxx)
        event_id: Event (FK, cascade on event delete)
        user_id: Assigned user (FK, cascade on user delete)
        role: Optional role in the event (e.g. "host", "tech")
        status: pending, confirmed or declined
        assigned_at: Assignment timestamp

    Constraints:
        - (event_id, user_id) is unique
    """

    __tablename__ = "event_assignments"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_assignments_event_user"),
    )

    GUID_PREFIX = "asg"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", name="fk_event_assignments_event_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_event_assignments_user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    role = Column(String(100), nullable=True)
    status = Column(
        Enum(
            AssignmentStatus,
            name="assignment_status",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        default=AssignmentStatus.PENDING,
        nullable=False
    )
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="assignments")
    user = relationship("User", lazy="select")

    def __repr__(self) -> str:
        return (
            f"<EventAssignment("
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"status={self.status.value if self.status else None}"
            f")>"
        )
