"""
Favorite service: saving listings and feeding the agents' CRM.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.property import Property
from app.models.user import User
from app.repositories.favorite import FavoriteRepository
from app.repositories.property import PropertyRepository
from app.services.crm import CRMService
from app.utils.exceptions import APIException, BadRequestError, NotFoundError, UnauthorizedError
import uuid
import logging

logger = logging.getLogger(__name__)

FAVORITE_IDS_LIMIT = 100
FAVORITE_DETAILS_LIMIT = 8


class FavoriteService:
    """Favorites of the current user."""

    def __init__(self, db_session: AsyncSession, crm_service: Optional[CRMService] = None):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.crm_service = crm_service or CRMService(db_session)

    async def toggle_favorite(self, property_id: uuid.UUID, current_user: Optional[User]) -> Dict[str, Any]:
        """
        Add or remove a favorite.

        Adding a favorite registers the user as a lead of the listing agent.

        Returns:
            {"is_favorite": new state}

        Raises:
            UnauthorizedError: If there is no current user
            NotFoundError: If the property doesn't exist
        """
        if current_user is None:
            raise UnauthorizedError("Authentication required to manage favorites")

        try:
            property_obj = await self.property_repo.get_by_id(property_id)
            if property_obj is None:
                raise NotFoundError("Property")

            result = await self.favorite_repo.toggle_favorite(current_user.id, property_id)

            if result["is_favorite"]:
                await self.crm_service.register_interaction(
                    agent_id=property_obj.agent_id,
                    client_id=current_user.id,
                    source="favorite",
                    property_id=property_id
                )

            state = "added" if result["is_favorite"] else "removed"
            logger.info(f"User {current_user.id} {state} favorite {property_id}")
            return result

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to toggle favorite {property_id}: {e}")
            raise BadRequestError(f"Failed to update favorites: {str(e)}")

    async def get_user_favorite_ids(self, current_user: Optional[User]) -> List[str]:
        """IDs of the user's most recent favorites. Anonymous users have none."""
        if current_user is None:
            return []
        favorites = await self.favorite_repo.get_user_favorites(current_user.id, take=FAVORITE_IDS_LIMIT)
        return [str(favorite.property_id) for favorite in favorites]

    async def get_favorites_with_details(
        self,
        current_user: User,
        limit: int = FAVORITE_DETAILS_LIMIT
    ) -> List[Property]:
        favorites = await self.favorite_repo.get_user_favorites(current_user.id, take=limit)
        return [favorite.property for favorite in favorites if favorite.property is not None]

    async def check_if_favorite(self, property_id: uuid.UUID, current_user: Optional[User]) -> bool:
        if current_user is None:
            return False
        return await self.favorite_repo.is_favorite(current_user.id, property_id)

    async def clear_favorites(self, current_user: User) -> int:
        try:
            return await self.favorite_repo.clear_user_favorites(current_user.id)
        except Exception as e:
            logger.error(f"Failed to clear favorites for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to clear favorites: {str(e)}")
