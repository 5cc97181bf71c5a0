"""
Listing engagement: view and share tracking, social stats and trending listings.

Client IPs are stored as SHA-256 hashes and user agents are reduced to the
browser and operating system.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.social import SharePlatform
from app.models.user import User
from app.repositories.property import PropertyRepository, SHARE_WEIGHT
from app.repositories.social import PropertyShareRepository, PropertyViewRepository
from app.utils.exceptions import APIException, BadRequestError, NotFoundError
from app.utils.serialization import serialize_property
import hashlib
import logging
import re
import uuid

logger = logging.getLogger(__name__)

TRENDING_DEFAULT_LIMIT = 10
TRENDING_MAX_LIMIT = 50

BROWSER_PATTERN = re.compile(r"(Chrome|Firefox|Safari|Edge)/[\d.]+")
OS_PATTERN = re.compile(r"Windows|Macintosh|Linux|Android|iPhone")


def hash_ip(ip_address: Optional[str]) -> str:
    return hashlib.sha256((ip_address or "unknown").encode()).hexdigest()


def anonymize_user_agent(user_agent: Optional[str]) -> str:
    """
    Keep only the browser token and the OS family.

    "Mozilla/5.0 (Macintosh; ...) Chrome/120.0.0.0 Safari/537.36" becomes
    "Chrome/120.0.0.0 Macintosh". Missing parts read "Unknown".
    """
    user_agent = user_agent or ""
    browser = BROWSER_PATTERN.search(user_agent)
    os_family = OS_PATTERN.search(user_agent)
    return f"{browser.group(0) if browser else 'Unknown'} {os_family.group(0) if os_family else 'Unknown'}"


class SocialService:
    """Engagement tracking for listings. Anonymous visitors are tracked too."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.view_repo = PropertyViewRepository(db_session)
        self.share_repo = PropertyShareRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def _ensure_property(self, property_id: uuid.UUID) -> None:
        if not await self.property_repo.exists(property_id):
            raise NotFoundError("Property")

    async def track_view(
        self,
        property_id: uuid.UUID,
        current_user: Optional[User],
        ip_address: Optional[str],
        user_agent: Optional[str]
    ) -> None:
        """
        Record a view of a listing detail page.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        try:
            await self._ensure_property(property_id)
            await self.view_repo.track_view({
                "property_id": property_id,
                "user_id": current_user.id if current_user else None,
                "ip_hash": hash_ip(ip_address),
                "user_agent": anonymize_user_agent(user_agent),
            })
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to track view of property {property_id}: {e}")
            raise BadRequestError("Failed to track view")

    async def track_share(
        self,
        property_id: uuid.UUID,
        platform: SharePlatform,
        current_user: Optional[User],
        ip_address: Optional[str],
        user_agent: Optional[str]
    ) -> None:
        """
        Record a share of a listing.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        try:
            await self._ensure_property(property_id)
            await self.share_repo.track_share({
                "property_id": property_id,
                "platform": platform,
                "user_id": current_user.id if current_user else None,
                "ip_hash": hash_ip(ip_address),
                "user_agent": anonymize_user_agent(user_agent),
            })
            logger.info(f"Property {property_id} shared on {platform.value}")
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to track share of property {property_id}: {e}")
            raise BadRequestError("Failed to track share")

    async def get_social_stats(self, property_id: uuid.UUID) -> Dict[str, Any]:
        """
        Total shares, total views and shares by platform of a listing.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        await self._ensure_property(property_id)
        return {
            "total_shares": await self.share_repo.count_by_property(property_id),
            "total_views": await self.view_repo.count_by_property(property_id),
            "shares_by_platform": await self.share_repo.count_by_platform(property_id),
        }

    async def get_trending(self, limit: int = TRENDING_DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """Available listings with their share and view counts, most engaging first."""
        limit = max(1, min(limit, TRENDING_MAX_LIMIT))
        rows = await self.property_repo.get_trending(limit)
        return [
            {
                **serialize_property(property_obj, include_agent=True),
                "share_count": share_count,
                "view_count": view_count,
                "engagement_score": share_count * SHARE_WEIGHT + view_count,
            }
            for property_obj, share_count, view_count in rows
        ]
