"""Initial schema: organizations, recurring events, events, attendees, saved locations.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Organizations table
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_organizations_username", "organizations", ["username"], unique=True)

    # Recurring event patterns
    op.create_table(
        "recurring_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "organization_id", sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("location_address", sa.String(500), nullable=False, server_default=""),
        sa.Column("location_lat", sa.Float(), nullable=False),
        sa.Column("location_lng", sa.Float(), nullable=False),
        sa.Column("start_time", sa.String(8), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("recurrence_type", sa.String(20), nullable=False),
        sa.Column("recurrence_interval", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("recurrence_days", sa.JSON(), nullable=True),
        sa.Column("recurrence_monthly_date", sa.Integer(), nullable=True),
        sa.Column("recurrence_monthly_week", sa.Integer(), nullable=True),
        sa.Column("recurrence_monthly_weekday", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("registration_window_before_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("registration_window_after_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("location_radius_meters", sa.Integer(), nullable=False, server_default=sa.text("50")),
        *_timestamps(),
        sa.CheckConstraint("duration_minutes > 0", name="check_recurring_duration_positive"),
        sa.CheckConstraint("recurrence_interval >= 1", name="check_recurring_interval_positive"),
        sa.CheckConstraint(
            "recurrence_type IN ('weekly', 'monthly_date', 'monthly_weekday')",
            name="check_recurring_type",
        ),
    )
    op.create_index("ix_recurring_events_organization_id", "recurring_events", ["organization_id"])

    # Event instances
    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "organization_id", sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "recurring_event_id", sa.String(36),
            sa.ForeignKey("recurring_events.id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("location_address", sa.String(500), nullable=False, server_default=""),
        sa.Column("location_lat", sa.Float(), nullable=False),
        sa.Column("location_lng", sa.Float(), nullable=False),
        sa.Column("location_radius_meters", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("registration_window_before_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("registration_window_after_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="check_event_time_range"),
        sa.CheckConstraint("location_lat BETWEEN -90 AND 90", name="check_event_lat_range"),
        sa.CheckConstraint("location_lng BETWEEN -180 AND 180", name="check_event_lng_range"),
        sa.CheckConstraint("location_radius_meters > 0", name="check_event_radius_positive"),
    )
    op.create_index("ix_events_organization_id", "events", ["organization_id"])
    op.create_index("ix_events_recurring_event_id", "events", ["recurring_event_id"])
    # Organization dashboards list their events by start time
    op.create_index("ix_events_org_start", "events", ["organization_id", "start_time"])

    # Attendees table. No unique (event_id, email): the per-event cookie
    # is the only duplicate guard.
    op.create_table(
        "attendees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "event_id", sa.String(36),
            sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("check_in_lat", sa.Float(), nullable=False),
        sa.Column("check_in_lng", sa.Float(), nullable=False),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_attendees_event_id", "attendees", ["event_id"])
    op.create_index("ix_attendees_email", "attendees", ["email"])

    # Saved locations
    op.create_table(
        "organization_locations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "organization_id", sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("use_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
        sa.UniqueConstraint("organization_id", "lat", "lng", name="uq_org_location_coords"),
    )
    op.create_index("ix_organization_locations_organization_id", "organization_locations", ["organization_id"])


def downgrade() -> None:
    op.drop_table("organization_locations")
    op.drop_table("attendees")
    op.drop_table("events")
    op.drop_table("recurring_events")
    op.drop_table("organizations")
