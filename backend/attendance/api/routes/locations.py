"""
Saved location endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from attendance.api.deps import get_location_repository
from attendance.schemas.location import LocationResponse
from attendance.services.interfaces.repositories import LocationRepository
from attendance.services.location_service import delete_location, list_locations
from attendance.core.security import get_current_organization_id

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("/", response_model=list[LocationResponse])
async def list_locations_endpoint(
    organization_id: str = Depends(get_current_organization_id),
    locations: LocationRepository = Depends(get_location_repository),
):
    """Saved locations, most recently used first."""
    return await list_locations(locations, organization_id)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location_endpoint(
    location_id: str,
    organization_id: str = Depends(get_current_organization_id),
    locations: LocationRepository = Depends(get_location_repository),
):
    await delete_location(locations, location_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
