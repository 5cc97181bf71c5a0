"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.models.user import User, UserRole
from app.services.admin import AdminService
from app.services.agent import AgentService
from app.services.ai import AIService
from app.services.appointment import AppointmentService
from app.services.auth import AuthService
from app.services.crm import CRMService
from app.services.favorite import FavoriteService
from app.services.image import ImageService
from app.services.property import PropertyService
from app.services.social import SocialService
from app.services.subscription import SubscriptionService
from app.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InactiveUserError,
    InsufficientPermissionsError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_image_service(db: AsyncSession = Depends(get_db)) -> ImageService:
    return ImageService(db)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_appointment_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


async def get_subscription_service(db: AsyncSession = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


async def get_crm_service(db: AsyncSession = Depends(get_db)) -> CRMService:
    return CRMService(db)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


async def get_ai_service(db: AsyncSession = Depends(get_db)) -> AIService:
    return AIService(db)


async def get_social_service(db: AsyncSession = Depends(get_db)) -> SocialService:
    return SocialService(db)


async def get_agent_service(db: AsyncSession = Depends(get_db)) -> AgentService:
    return AgentService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Unexpected authentication failure: {e}")
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Current user, refusing disabled accounts."""
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")

    return current_user


async def get_current_agent_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with agent role (or admin).

    Raises:
        InsufficientPermissionsError: If user is not an agent or admin
    """
    if current_user.role not in [UserRole.AGENT, UserRole.ADMIN]:
        raise InsufficientPermissionsError("access agent resources")

    return current_user


# Optional authentication dependency (public endpoints that use user context when present)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if token is provided and valid, otherwise return None.

    Args:
        credentials: HTTP Bearer credentials (optional)
        auth_service: Authentication service

    Returns:
        User object if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        user = await auth_service.get_current_user(credentials.credentials)
        return user if user.is_active else None
    except APIException as e:
        logger.debug(f"Ignoring invalid optional credentials: {e.detail}")
        return None
