"""
Authentication endpoints: organization registration and login.
"""

from fastapi import APIRouter, Depends, status

from attendance.api.deps import get_organization_repository
from attendance.schemas.organization import OrganizationCreate, OrganizationResponse, OrganizationLogin, Token
from attendance.services.interfaces.repositories import OrganizationRepository
from attendance.services.auth_service import register_organization, authenticate_organization

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: OrganizationCreate,
    organizations: OrganizationRepository = Depends(get_organization_repository),
):
    """Register a new organization account."""
    return await register_organization(organizations, data)


@router.post("/login", response_model=Token)
async def login(
    data: OrganizationLogin,
    organizations: OrganizationRepository = Depends(get_organization_repository),
):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_organization(organizations, data)
    return Token(access_token=token)
