"""
User repository for authentication and user management operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from app.repositories.base import BaseRepository
from app.models.user import User, UserRole, SubscriptionTier
from app.models.property import Property
from app.models.favorite import Favorite
from app.models.appointment import Appointment
from app.utils.exceptions import DuplicateResourceError, ForbiddenError, NotFoundError
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    Handles secure user operations and role-based access control.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password
                      Optional: name, phone, role (defaults to CLIENT)

        Returns:
            Created user instance

        Raises:
            ValueError: If the email is malformed
            DuplicateResourceError: If the email is already registered
        """
        user_data = dict(user_data)
        try:
            email = User.validate_email_format(user_data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise DuplicateResourceError("User", email)

            password = user_data.pop("password")

            create_data = {
                **user_data,
                "email": email,
                "hashed_password": User.hash_password(password),
                "role": user_data.get("role") or UserRole.CLIENT,
                "subscription_tier": user_data.get("subscription_tier") or SubscriptionTier.FREE,
                "is_active": user_data.get("is_active", True)
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except (ValueError, DuplicateResourceError) as e:
            logger.warning(f"User creation rejected: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        user = await self.get_by_field("email", email.lower().strip())

        if user:
            logger.debug(f"Retrieved user by email: {email}")
        else:
            logger.debug(f"User with email {email} not found")

        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if authentication successful, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            logger.info(f"User authenticated successfully: {email}")
            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise

    async def update_user(
        self,
        user_id: uuid.UUID,
        user_data: Dict[str, Any],
        current_user_id: uuid.UUID
    ) -> User:
        """
        Update a user. Users may update themselves; admins may update anyone.

        Raises:
            ForbiddenError: If a non-admin updates another user
            NotFoundError: If the user does not exist
            DuplicateResourceError: If the new email is taken
        """
        if user_id != current_user_id:
            current_user = await self.get_by_id(current_user_id)
            if current_user is None or not current_user.is_admin:
                logger.warning(f"User {current_user_id} tried to update user {user_id}")
                raise ForbiddenError("Unauthorized: Cannot update other users")

        data = dict(user_data)
        if data.get("email"):
            data["email"] = User.validate_email_format(data["email"])
            existing = await self.get_by_email(data["email"])
            if existing and existing.id != user_id:
                raise DuplicateResourceError("User", data["email"])

        password = data.pop("password", None)
        if password:
            data["hashed_password"] = User.hash_password(password)

        updated_user = await self.update(user_id, data)
        if updated_user is None:
            raise NotFoundError("User")

        logger.info(f"Updated user {updated_user.email}")
        return updated_user

    async def delete_user(self, user_id: uuid.UUID, current_user_id: uuid.UUID) -> bool:
        """
        Delete a user with every listing, favorite and appointment (CASCADE).

        Raises:
            ForbiddenError: If the current user is not an admin
        """
        current_user = await self.get_by_id(current_user_id)
        if current_user is None or not current_user.is_admin:
            logger.warning(f"User {current_user_id} tried to delete user {user_id}")
            raise ForbiddenError("Unauthorized: Only admins can delete users")

        deleted = await self.delete(user_id)
        if deleted:
            logger.info(f"Deleted user {user_id} with all associated data")
        return deleted

    async def update_user_role(self, user_id: uuid.UUID, new_role: UserRole) -> Optional[User]:
        """
        Update user's role.

        Args:
            user_id: UUID of the user
            new_role: New user role

        Returns:
            Updated user instance or None if not found
        """
        updated_user = await self.update(user_id, {"role": new_role})
        if updated_user:
            logger.info(f"User {updated_user.email} role updated to {new_role.value}")
        return updated_user

    async def update_user_status(self, user_id: uuid.UUID, is_active: bool) -> Optional[User]:
        updated_user = await self.update(user_id, {"is_active": is_active})
        if updated_user:
            status = "activated" if is_active else "deactivated"
            logger.info(f"User {updated_user.email} {status}")
        return updated_user

    @staticmethod
    def _count_columns():
        property_count = (
            select(func.count(Property.id))
            .where(Property.agent_id == User.id)
            .correlate(User)
            .scalar_subquery()
            .label("property_count")
        )
        favorite_count = (
            select(func.count(Favorite.id))
            .where(Favorite.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
            .label("favorite_count")
        )
        appointment_count = (
            select(func.count(Appointment.id))
            .where(Appointment.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
            .label("appointment_count")
        )
        return property_count, favorite_count, appointment_count

    @staticmethod
    def _with_counts(row) -> Dict[str, Any]:
        user, property_count, favorite_count, appointment_count = row
        return {
            **user.to_dict(),
            "property_count": property_count or 0,
            "favorite_count": favorite_count or 0,
            "appointment_count": appointment_count or 0,
        }

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        List users with their property, favorite and appointment counts.

        Args:
            role: Optional role filter
            search: Case-insensitive match on name or email
            skip: Number of records to skip
            take: Maximum number of records to return

        Returns:
            Tuple of (user dictionaries with counts, total count)
        """
        try:
            conditions = []
            if role:
                conditions.append(User.role == role)
            if search and search.strip():
                search_pattern = f"%{search.strip()}%"
                conditions.append(or_(User.email.ilike(search_pattern), User.name.ilike(search_pattern)))

            count_query = select(func.count(User.id))
            query = select(User, *self._count_columns())
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar() or 0

            query = query.order_by(desc(User.created_at)).offset(skip).limit(take)
            result = await self.db.execute(query)
            users = [self._with_counts(row) for row in result.all()]

            logger.debug(f"User listing returned {len(users)} of {total_count} users")
            return users, total_count
        except Exception as e:
            logger.error(f"Failed to list users: {e}")
            raise

    async def get_user_with_counts(self, user_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        query = select(User, *self._count_columns()).where(User.id == user_id)
        result = await self.db.execute(query)
        row = result.first()
        return self._with_counts(row) if row else None

    async def get_agents(self, skip: int = 0, take: int = 100) -> List[User]:
        """Active agents ordered by name."""
        return await self.get_multi(
            skip=skip,
            limit=take,
            filters={"role": UserRole.AGENT, "is_active": True},
            order_by="name"
        )

    async def count_agents(self) -> int:
        return await self.count({"role": UserRole.AGENT, "is_active": True})
