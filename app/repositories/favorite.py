"""
Favorite repository: saved properties per user.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, and_, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from app.repositories.base import BaseRepository
from app.models.favorite import Favorite
from app.models.property import Property
from app.utils.exceptions import ConflictError
from typing import Dict, List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class FavoriteRepository(BaseRepository[Favorite]):
    """Repository for favorites. A property is saved at most once per user."""

    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def _find(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Favorite]:
        query = select(Favorite).where(
            and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def add_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Favorite:
        """
        Save a property for a user.

        Raises:
            ConflictError: If the property is already a favorite
        """
        if await self._find(user_id, property_id):
            raise ConflictError("Property is already in favorites")

        try:
            favorite = await self.create({"user_id": user_id, "property_id": property_id})
        except IntegrityError:
            raise ConflictError("Property is already in favorites")

        logger.debug(f"User {user_id} added favorite {property_id}")
        return favorite

    async def remove_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        try:
            stmt = delete(Favorite).where(
                and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount > 0
        except Exception:
            await self.db.rollback()
            raise

    async def toggle_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Dict[str, bool]:
        """
        Add the favorite if missing, remove it otherwise.

        Returns:
            {"is_favorite": new state}
        """
        if await self._find(user_id, property_id):
            await self.remove_favorite(user_id, property_id)
            return {"is_favorite": False}

        await self.add_favorite(user_id, property_id)
        return {"is_favorite": True}

    async def is_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        return await self._find(user_id, property_id) is not None

    async def get_user_favorites(
        self,
        user_id: uuid.UUID,
        skip: int = 0,
        take: int = 20
    ) -> List[Favorite]:
        """Favorites of a user, newest first, with the property and its images."""
        query = (
            select(Favorite)
            .options(
                selectinload(Favorite.property).selectinload(Property.images),
                selectinload(Favorite.property).selectinload(Property.agent)
            )
            .where(Favorite.user_id == user_id)
            .order_by(desc(Favorite.created_at))
            .offset(skip)
            .limit(take)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_favorite_count(self, property_id: uuid.UUID) -> int:
        return await self.count({"property_id": property_id})

    async def get_favorite_count_batch(self, property_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """Favorite counts for several properties; properties without favorites map to 0."""
        counts = {property_id: 0 for property_id in property_ids}
        if not property_ids:
            return counts

        query = (
            select(Favorite.property_id, func.count(Favorite.id))
            .where(Favorite.property_id.in_(property_ids))
            .group_by(Favorite.property_id)
        )
        result = await self.db.execute(query)
        for property_id, count in result.all():
            counts[property_id] = count
        return counts

    async def clear_user_favorites(self, user_id: uuid.UUID) -> int:
        """Remove every favorite of a user and return how many were removed."""
        try:
            result = await self.db.execute(delete(Favorite).where(Favorite.user_id == user_id))
            await self.db.commit()
            removed = result.rowcount or 0
            logger.info(f"Cleared {removed} favorites for user {user_id}")
            return removed
        except Exception:
            await self.db.rollback()
            raise
