"""
Saved organization locations, upserted whenever an event is created so
admins can reuse addresses.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint, func

from attendance.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class OrganizationLocation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "organization_locations"

    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    use_count = Column(Integer, nullable=False, default=1)
    last_used_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("organization_id", "lat", "lng", name="uq_org_location_coords"),
    )

    def __repr__(self) -> str:
        return f"<OrganizationLocation(id={self.id}, label={self.label}, uses={self.use_count})>"
