"""
Attendance record created by a successful check-in.

There is no unique constraint on (event_id, email); duplicates are only
discouraged by the advisory per-event attendance cookie.
"""

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from attendance.db.base import Base, UUIDPrimaryKeyMixin


class Attendee(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "attendees"

    event_id = Column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    check_in_lat = Column(Float, nullable=False)
    check_in_lng = Column(Float, nullable=False)
    user_agent = Column(String(500), nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    event = relationship("Event", back_populates="attendees")

    def __repr__(self) -> str:
        return f"<Attendee(id={self.id}, event={self.event_id})>"
