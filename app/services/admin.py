"""
Admin service: platform-wide user and listing management plus dashboard metrics.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.appointment import AppointmentStatus
from app.models.property import Property, PropertyStatus
from app.models.user import User, UserRole
from app.repositories.appointment import AppointmentRepository
from app.repositories.favorite import FavoriteRepository
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.utils.availability import ensure_utc
from app.utils.cache import invalidate_property_pages
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
    ValidationError,
)
from app.utils.serialization import decimal_to_number, serialize_agent
import uuid
import logging

logger = logging.getLogger(__name__)

RECENT_DAYS = 30
MAX_METRIC_DAYS = 365


def _grouped(counts: Dict[Any, int], members) -> List[Dict[str, Any]]:
    return [{"key": member.value, "count": counts.get(member, 0)} for member in members]


def _daily_counts(timestamps: List[datetime], start: datetime, days: int) -> List[Dict[str, Any]]:
    """Bucket timestamps into UTC days, one entry per day including empty ones."""
    counter = Counter(ensure_utc(value).date() for value in timestamps)
    first_day = start.date()
    return [
        {"date": (first_day + timedelta(days=offset)).isoformat(),
         "count": counter.get(first_day + timedelta(days=offset), 0)}
        for offset in range(days + 1)
    ]


class AdminService:
    """Administration actions. Every method requires an ADMIN user."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.appointment_repo = AppointmentRepository(db_session)

    @staticmethod
    def _require_admin(current_user: User) -> None:
        if not current_user.is_admin:
            logger.warning(f"Non-admin user {current_user.id} attempted an admin action")
            raise InsufficientPermissionsError("access the admin panel")

    async def list_users(
        self,
        current_user: User,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Dict[str, Any]], int]:
        self._require_admin(current_user)
        return await self.user_repo.list_users(role=role, search=search, skip=skip, take=take)

    async def get_user(self, user_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        self._require_admin(current_user)
        user = await self.user_repo.get_user_with_counts(user_id)
        if user is None:
            raise NotFoundError("User", detail="Usuario no encontrado")
        return user

    async def update_user_role(self, user_id: uuid.UUID, role: UserRole, current_user: User) -> Dict[str, Any]:
        """
        Change another user's role.

        Raises:
            ValidationError: If admins try to change their own role
            NotFoundError: If the user doesn't exist
        """
        self._require_admin(current_user)
        if user_id == current_user.id:
            raise ValidationError("No puedes cambiar tu propio rol")

        try:
            user = await self.user_repo.update_user_role(user_id, role)
            if user is None:
                raise NotFoundError("User", detail="Usuario no encontrado")
            logger.info(f"Admin {current_user.email} set role of {user.email} to {role.value}")
            return user.to_dict()
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update role of user {user_id}: {e}")
            raise BadRequestError(f"Failed to update user role: {str(e)}")

    async def update_user_status(self, user_id: uuid.UUID, is_active: bool, current_user: User) -> Dict[str, Any]:
        self._require_admin(current_user)
        if user_id == current_user.id and not is_active:
            raise ValidationError("No puedes desactivar tu propia cuenta")

        try:
            user = await self.user_repo.update_user_status(user_id, is_active)
            if user is None:
                raise NotFoundError("User", detail="Usuario no encontrado")
            return user.to_dict()
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update status of user {user_id}: {e}")
            raise BadRequestError(f"Failed to update user status: {str(e)}")

    async def delete_user(self, user_id: uuid.UUID, current_user: User) -> bool:
        """
        Delete a user with all of their data.

        Raises:
            ValidationError: If admins try to delete themselves
            NotFoundError: If the user doesn't exist
        """
        self._require_admin(current_user)
        if user_id == current_user.id:
            raise ValidationError("No puedes eliminar tu propia cuenta")

        try:
            deleted = await self.user_repo.delete_user(user_id, current_user.id)
            if not deleted:
                raise NotFoundError("User", detail="Usuario no encontrado")

            # Their listings went with them
            invalidate_property_pages()
            logger.info(f"Admin {current_user.email} deleted user {user_id}")
            return deleted
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise BadRequestError(f"Failed to delete user: {str(e)}")

    @staticmethod
    def _property_row(property_obj: Property, favorite_count: int, appointment_count: int) -> Dict[str, Any]:
        return {
            "id": str(property_obj.id),
            "title": property_obj.title,
            "price": decimal_to_number(property_obj.price) or 0,
            "transaction_type": property_obj.transaction_type.value,
            "category": property_obj.category.value,
            "status": property_obj.status,
            "city": property_obj.city,
            "state": property_obj.state,
            "created_at": property_obj.created_at,
            "agent": serialize_agent(property_obj.agent),
            "favorite_count": favorite_count,
            "appointment_count": appointment_count,
        }

    async def list_properties(
        self,
        current_user: User,
        status: Optional[PropertyStatus] = None,
        search: Optional[str] = None,
        agent_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Dict[str, Any]], int]:
        self._require_admin(current_user)
        rows, total = await self.property_repo.list_for_admin(
            status=status, search=search, agent_id=agent_id, skip=skip, take=take
        )
        return [self._property_row(*row) for row in rows], total

    async def update_property_status(
        self,
        property_id: uuid.UUID,
        status: PropertyStatus,
        current_user: User
    ) -> Property:
        self._require_admin(current_user)
        try:
            property_obj = await self.property_repo.update_status(property_id, status)
            if property_obj is None:
                raise NotFoundError("Property")

            invalidate_property_pages()
            logger.info(f"Admin {current_user.email} set property {property_id} to {status.value}")
            return property_obj
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update status of property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property status: {str(e)}")

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> bool:
        self._require_admin(current_user)
        try:
            deleted = await self.property_repo.delete_property(property_id, current_user)
            invalidate_property_pages()
            logger.info(f"Admin {current_user.email} deleted property {property_id}")
            return deleted
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Admin failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

    async def get_stats(self, current_user: User) -> Dict[str, Any]:
        """
        Platform totals and breakdowns for the admin dashboard.

        Returns:
            Totals, groupings by role, listing status and appointment status,
            and the users and listings created in the last 30 days
        """
        self._require_admin(current_user)
        since = datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)

        return {
            "total_users": await self.user_repo.count(),
            "total_properties": await self.property_repo.count(),
            "total_appointments": await self.appointment_repo.count(),
            "total_favorites": await self.favorite_repo.count(),
            "users_by_role": _grouped(await self.user_repo.count_grouped("role"), UserRole),
            "properties_by_status": _grouped(await self.property_repo.count_grouped("status"), PropertyStatus),
            "appointments_by_status": _grouped(
                await self.appointment_repo.count_grouped("status"), AppointmentStatus
            ),
            "recent_users": await self.user_repo.count_created_since(since),
            "recent_properties": await self.property_repo.count_created_since(since),
        }

    async def get_metrics_by_period(self, current_user: User, days: int = RECENT_DAYS) -> Dict[str, Any]:
        """
        Daily creation counts of users, listings and appointments.

        Args:
            current_user: Admin user
            days: How many days back to report (1-365)

        Returns:
            Dictionary of per-day series, oldest day first
        """
        self._require_admin(current_user)
        if days < 1 or days > MAX_METRIC_DAYS:
            raise ValidationError(f"days must be between 1 and {MAX_METRIC_DAYS}")

        now = datetime.now(timezone.utc)
        start = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)

        return {
            "users": _daily_counts(await self.user_repo.get_created_since(start), start, days),
            "properties": _daily_counts(await self.property_repo.get_created_since(start), start, days),
            "appointments": _daily_counts(await self.appointment_repo.get_created_since(start), start, days),
        }
