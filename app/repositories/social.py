"""
View and share tracking repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from app.repositories.base import BaseRepository
from app.models.social import PropertyShare, PropertyView, SharePlatform
from typing import Any, Dict, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyViewRepository(BaseRepository[PropertyView]):

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyView, db)

    async def track_view(self, view_data: Dict[str, Any]) -> PropertyView:
        """
        Record one detail page view.

        Args:
            view_data: property_id, user_id (optional), ip_hash, user_agent
        """
        view = await self.create(view_data)
        logger.debug(f"Tracked view of property {view.property_id}")
        return view

    async def count_by_property(self, property_id: uuid.UUID) -> int:
        return await self.count({"property_id": property_id})


class PropertyShareRepository(BaseRepository[PropertyShare]):

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyShare, db)

    async def track_share(self, share_data: Dict[str, Any]) -> PropertyShare:
        """
        Record one share of a listing.

        Args:
            share_data: property_id, platform, user_id (optional), ip_hash, user_agent
        """
        share = await self.create(share_data)
        logger.debug(f"Tracked {share.platform.value} share of property {share.property_id}")
        return share

    async def count_by_property(self, property_id: uuid.UUID, platform: Optional[SharePlatform] = None) -> int:
        filters: Dict[str, Any] = {"property_id": property_id}
        if platform is not None:
            filters["platform"] = platform
        return await self.count(filters)

    async def count_by_platform(self, property_id: uuid.UUID) -> Dict[str, int]:
        """Share counts of a property keyed by platform; platforms without shares are left out."""
        query = (
            select(PropertyShare.platform, func.count(PropertyShare.id))
            .where(PropertyShare.property_id == property_id)
            .group_by(PropertyShare.platform)
        )
        result = await self.db.execute(query)
        return {platform.value: count for platform, count in result.all()}
