"""
Saved organization locations.

Every event or recurring pattern an organization creates records its
coordinates here so the dashboard can offer recently used venues.
"""

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from attendance.models import OrganizationLocation
from attendance.services.interfaces.repositories import LocationRepository
from attendance.core.logging import get_logger

logger = get_logger(__name__)


async def remember_location(
    locations: LocationRepository,
    organization_id: str,
    address: str,
    lat: float,
    lng: float,
) -> None:
    """Record a use of a location. Failures are logged and never propagated."""
    try:
        await locations.upsert(organization_id, address=address or "", lat=lat, lng=lng)
    except SQLAlchemyError as e:
        logger.warning(
            "location_save_failed",
            organization_id=organization_id,
            error=str(e),
        )


async def list_locations(
    locations: LocationRepository, organization_id: str
) -> list[OrganizationLocation]:
    return await locations.list_for_organization(organization_id)


async def delete_location(
    locations: LocationRepository, location_id: str, organization_id: str
) -> None:
    location = await locations.get_for_organization(location_id, organization_id)
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Location {location_id} not found",
        )

    await locations.delete(location)
    logger.info("location_deleted", location_id=location_id, organization_id=organization_id)
