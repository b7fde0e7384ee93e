"""
Event model: one concrete, dated occurrence attendees can check in to.

Key design decisions:
- Window offsets and radius are copied from the recurring pattern at
  generation time and may diverge per instance afterwards
- `recurring_event_id` is a non-owning back-reference; deleting the
  pattern cascades to its instances at the DB level
- `is_closed` is a manual override that beats the time-based window
"""

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from attendance.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"

    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recurring_event_id = Column(
        String(36), ForeignKey("recurring_events.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title = Column(String(255), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    timezone = Column(String(64), nullable=True)
    location_address = Column(String(500), nullable=False, default="")
    location_lat = Column(Float, nullable=False)
    location_lng = Column(Float, nullable=False)
    location_radius_meters = Column(Integer, nullable=False, default=50)
    registration_window_before_minutes = Column(Integer, nullable=False, default=30)
    registration_window_after_minutes = Column(Integer, nullable=False, default=30)
    is_closed = Column(Boolean, nullable=False, default=False)

    organization = relationship("Organization", back_populates="events")
    recurring_event = relationship("RecurringEvent", back_populates="events")
    attendees = relationship("Attendee", back_populates="event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_event_time_range"),
        CheckConstraint("location_lat BETWEEN -90 AND 90", name="check_event_lat_range"),
        CheckConstraint("location_lng BETWEEN -180 AND 180", name="check_event_lng_range"),
        CheckConstraint("location_radius_meters > 0", name="check_event_radius_positive"),
        # Organization dashboards list events by start time
        Index("ix_events_org_start", "organization_id", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, start={self.start_time}, closed={self.is_closed})>"
