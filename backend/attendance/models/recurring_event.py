"""
Recurring event pattern: the admin-authored template instances are
expanded from. Immutable once its instances exist; edits go to the
instances individually.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Date, ForeignKey, JSON, CheckConstraint,
)
from sqlalchemy.orm import relationship

from attendance.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RecurringEvent(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "recurring_events"

    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    location_address = Column(String(500), nullable=False, default="")
    location_lat = Column(Float, nullable=False)
    location_lng = Column(Float, nullable=False)
    start_time = Column(String(8), nullable=False)  # HH:MM[:SS], local to `timezone`
    duration_minutes = Column(Integer, nullable=False)
    timezone = Column(String(64), nullable=False)
    recurrence_type = Column(String(20), nullable=False)
    recurrence_interval = Column(Integer, nullable=False, default=1)
    recurrence_days = Column(JSON, nullable=True)
    recurrence_monthly_date = Column(Integer, nullable=True)
    recurrence_monthly_week = Column(Integer, nullable=True)
    recurrence_monthly_weekday = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    registration_window_before_minutes = Column(Integer, nullable=False, default=30)
    registration_window_after_minutes = Column(Integer, nullable=False, default=30)
    location_radius_meters = Column(Integer, nullable=False, default=50)

    organization = relationship("Organization", back_populates="recurring_events")
    events = relationship("Event", back_populates="recurring_event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_recurring_duration_positive"),
        CheckConstraint("recurrence_interval >= 1", name="check_recurring_interval_positive"),
        CheckConstraint(
            "recurrence_type IN ('weekly', 'monthly_date', 'monthly_weekday')",
            name="check_recurring_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<RecurringEvent(id={self.id}, title={self.title}, type={self.recurrence_type})>"
