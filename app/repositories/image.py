"""
Repository for PropertyImage model operations.
Handles gallery queries, batch inserts and ordering updates for listing photos.
"""

import uuid
from typing import List, Optional, Dict, Any, Tuple
from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.models.image import PropertyImage
from app.models.property import Property
from app.repositories.base import BaseRepository
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def create_many(self, images: List[Dict[str, Any]]) -> List[PropertyImage]:
        """
        Insert several images in one transaction.

        Args:
            images: Column values for each image (property_id, url, alt, order)

        Returns:
            Created images in input order
        """
        if not images:
            return []
        created = await self.bulk_create(images)
        logger.info(f"Created {len(created)} images for property {images[0].get('property_id')}")
        return created

    async def find_by_id(self, image_id: uuid.UUID) -> Optional[PropertyImage]:
        return await self.get_by_id(image_id)

    async def find_by_property(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """
        Get all images for a specific property.

        Args:
            property_id: ID of the property

        Returns:
            List of property images in display order
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.order.asc(), PropertyImage.created_at.asc())
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_property(self, property_id: uuid.UUID) -> int:
        """
        Count images for a specific property.

        Args:
            property_id: ID of the property

        Returns:
            Number of images for the property
        """
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id
        )

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_by_agent(self, agent_id: uuid.UUID) -> int:
        """Count images across every listing of an agent."""
        query = (
            select(func.count(PropertyImage.id))
            .join(Property, Property.id == PropertyImage.property_id)
            .where(Property.agent_id == agent_id)
        )

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def update_order(self, image_id: uuid.UUID, order: int) -> Optional[PropertyImage]:
        return await self.update(image_id, {"order": order})

    async def update_many_orders(self, updates: List[Tuple[uuid.UUID, int]]) -> int:
        """
        Update display orders for several images at once.
        Either every update is applied or none is.

        Args:
            updates: (image ID, new order) pairs

        Returns:
            Number of images updated

        Raises:
            NotFoundError: If any image does not exist
        """
        if not updates:
            return 0

        try:
            for image_id, order in updates:
                update_query = (
                    update(PropertyImage)
                    .where(PropertyImage.id == image_id)
                    .values(order=order)
                )
                result = await self.db.execute(update_query)
                if result.rowcount == 0:
                    raise NotFoundError("Image", str(image_id))

            await self.db.commit()
            logger.debug(f"Reordered {len(updates)} images")
            return len(updates)
        except Exception:
            await self.db.rollback()
            raise

    async def find_foreign_ids(self, property_id: uuid.UUID, image_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """IDs from `image_ids` that are not images of the given property."""
        if not image_ids:
            return []
        query = select(PropertyImage.id).where(
            and_(
                PropertyImage.id.in_(image_ids),
                PropertyImage.property_id == property_id
            )
        )
        result = await self.db.execute(query)
        owned = set(result.scalars().all())
        return [image_id for image_id in image_ids if image_id not in owned]

    async def delete_by_property(self, property_id: uuid.UUID) -> int:
        """
        Delete all images for a property.

        Args:
            property_id: ID of the property

        Returns:
            Number of deleted images
        """
        try:
            delete_query = delete(PropertyImage).where(
                PropertyImage.property_id == property_id
            )

            result = await self.db.execute(delete_query)
            await self.db.commit()
            return result.rowcount or 0
        except Exception:
            await self.db.rollback()
            raise
