"""
Organization (tenant) account. Every event, recurring pattern and saved
location belongs to exactly one organization.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from attendance.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Organization(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "organizations"

    username = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    events = relationship("Event", back_populates="organization", passive_deletes=True)
    recurring_events = relationship(
        "RecurringEvent", back_populates="organization", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, username={self.username})>"
