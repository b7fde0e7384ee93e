"""
FastAPI dependencies wiring the repository ports and token service to
the request-scoped database session.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from attendance.db.session import get_db
from attendance.infrastructure.repositories import (
    SqlAttendeeRepository,
    SqlEventRepository,
    SqlLocationRepository,
    SqlOrganizationRepository,
    SqlRecurringEventRepository,
)
from attendance.services.interfaces.repositories import (
    AttendeeRepository,
    EventRepository,
    LocationRepository,
    OrganizationRepository,
    RecurringEventRepository,
)
from attendance.services.interfaces.secrets import SettingsSecretProvider
from attendance.services.qr_tokens import QrTokenService
from attendance.core.config import get_settings


def get_organization_repository(db: AsyncSession = Depends(get_db)) -> OrganizationRepository:
    return SqlOrganizationRepository(db)


def get_event_repository(db: AsyncSession = Depends(get_db)) -> EventRepository:
    return SqlEventRepository(db)


def get_recurring_event_repository(db: AsyncSession = Depends(get_db)) -> RecurringEventRepository:
    return SqlRecurringEventRepository(db)


def get_attendee_repository(db: AsyncSession = Depends(get_db)) -> AttendeeRepository:
    return SqlAttendeeRepository(db)


def get_location_repository(db: AsyncSession = Depends(get_db)) -> LocationRepository:
    return SqlLocationRepository(db)


@lru_cache
def get_qr_token_service() -> QrTokenService:
    """One token service per process; the secret is read once from settings."""
    settings = get_settings()
    return QrTokenService(
        SettingsSecretProvider(settings),
        ttl_ms=settings.QR_CODE_TTL_MS,
        clock_skew_ms=settings.QR_CLOCK_SKEW_MS,
    )
