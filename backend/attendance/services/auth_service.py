"""
Authentication service handling organization registration and login.
"""

from fastapi import HTTPException, status

from attendance.models import Organization
from attendance.schemas.organization import OrganizationCreate, OrganizationLogin
from attendance.services.interfaces.repositories import OrganizationRepository
from attendance.core.security import hash_password, verify_password, create_access_token
from attendance.core.logging import get_logger

logger = get_logger(__name__)


async def register_organization(
    organizations: OrganizationRepository, data: OrganizationCreate
) -> Organization:
    """
    Register a new organization with a hashed password.
    Raises 409 if the username is already taken.
    """
    username = data.username.lower()
    if await organizations.get_by_username(username):
        logger.warning("registration_failed", reason="username_exists", username=username)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        )

    organization = await organizations.create(
        username=username,
        name=data.name.strip(),
        hashed_password=hash_password(data.password),
    )

    logger.info("organization_registered", organization_id=organization.id, username=username)
    return organization


async def authenticate_organization(
    organizations: OrganizationRepository, data: OrganizationLogin
) -> str:
    """
    Authenticate an organization and return a JWT access token.
    Raises 401 if credentials are invalid.
    """
    organization = await organizations.get_by_username(data.username.lower())

    if not organization or not verify_password(data.password, organization.hashed_password):
        logger.warning("login_failed", username=data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not organization.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": organization.id})
    logger.info("organization_logged_in", organization_id=organization.id)
    return token
