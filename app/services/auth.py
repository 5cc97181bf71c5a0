"""
Authentication service for signup, login, token management and role permissions.
Handles JWT token generation, validation and user authentication flows.
"""

from typing import Tuple, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.repositories.user import UserRepository
from app.models.user import User, UserRole, SubscriptionTier
from app.schemas.auth import SignupRequest
from app.schemas.user import UserUpdate
from app.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
)
from app.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    BadRequestError,
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS: Dict[UserRole, List[str]] = {
    UserRole.CLIENT: [
        "properties:read",
        "favorites:manage",
        "appointments:book",
    ],
    UserRole.AGENT: [
        "properties:read",
        "properties:write",
        "images:manage",
        "appointments:manage",
        "crm:manage",
        "subscription:manage",
    ],
    UserRole.ADMIN: [
        "properties:read",
        "properties:write",
        "images:manage",
        "appointments:manage",
        "crm:manage",
        "subscription:manage",
        "users:manage",
        "admin:access",
    ],
}


def get_role_permissions(role: UserRole) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role, []))


class AuthService:
    """
    Authentication service for managing signup, login and token flows.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def signup(self, signup_data: SignupRequest) -> User:
        """
        Register a new account.

        Args:
            signup_data: Validated signup payload

        Returns:
            Created user (tier FREE)

        Raises:
            ForbiddenError: If the signup requests the ADMIN role
            DuplicateResourceError: If the email is already registered
        """
        try:
            if signup_data.role == UserRole.ADMIN:
                logger.warning(f"Rejected admin signup for {signup_data.email}")
                raise ForbiddenError("Cannot sign up as administrator")

            create_data = signup_data.model_dump()
            create_data["role"] = signup_data.role or UserRole.CLIENT
            create_data["subscription_tier"] = SubscriptionTier.FREE

            user = await self.user_repo.create_user(create_data)
            logger.info(f"User signed up: {user.email} ({user.role.value})")
            return user

        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to sign up {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to create account: {str(e)}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            Authenticated User object

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
            ValidationError: If input validation fails
        """
        try:
            if not email or not email.strip():
                raise ValidationError("Email is required")

            if not password or not password.strip():
                raise ValidationError("Password is required")

            user = await self.user_repo.authenticate_user(email, password)

            if not user:
                logger.warning(f"Failed authentication attempt for email: {email}")
                raise InvalidCredentialsError()

            if not user.is_active:
                raise InactiveUserError()

            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )

        refresh_token = create_refresh_token(
            user_id=user.id,
            email=user.email
        )

        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate user and create tokens.

        Returns:
            Login payload with the user, both tokens and the access token lifetime

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)

        logger.info(f"User logged in: {user.email}")
        return {
            "user": self.current_user_payload(user),
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_minutes * 60,
        }

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(refresh_token, token_type="refresh")
            user = await self._get_token_user(token_payload.user_id)

            access_token = create_access_token(
                user_id=user.id,
                email=user.email,
                role=user.role
            )

            return {
                "access_token": access_token,
                "token_type": "bearer",
                "expires_in": settings.access_token_expire_minutes * 60,
            }

        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid or its user no longer exists
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(token, token_type="access")
            return await self._get_token_user(token_payload.user_id)

        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

    async def _get_token_user(self, user_id: str) -> User:
        try:
            user = await self.get_user_by_id(uuid.UUID(user_id))
        except (ValueError, NotFoundError):
            raise InvalidTokenError("Token user no longer exists")

        if not user.is_active:
            raise InactiveUserError()
        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Get user by ID.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    @staticmethod
    def current_user_payload(user: User) -> Dict[str, Any]:
        """Public user representation plus the permissions of its role."""
        return {**user.to_dict(), "permissions": get_role_permissions(user.role)}

    async def update_profile(self, current_user: User, profile_data: UserUpdate) -> User:
        """
        Update the current user's own name, phone, avatar or password.

        Raises:
            ValidationError: If no field was sent
        """
        try:
            update_data = profile_data.model_dump(exclude_unset=True)
            if not update_data:
                raise ValidationError("No profile fields to update")

            user = await self.user_repo.update_user(current_user.id, update_data, current_user.id)
            logger.info(f"Profile updated for {user.email}: {', '.join(sorted(update_data))}")
            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update profile of {current_user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")
