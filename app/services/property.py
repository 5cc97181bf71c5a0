"""
Property service for managing property listings with business logic validation.
Handles listing actions (tier limits, ownership), map and search queries, and
cached listing aggregates.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.property import PropertyRepository
from app.models.property import Property, PropertyStatus
from app.models.user import User, UserRole
from app.schemas.property import PropertyCreate, PropertyUpdate, PropertyFilters
from app.utils.cache import response_cache, invalidate_property_pages, PROPERTIES_TAG
from app.utils.exceptions import (
    APIException,
    NotFoundError,
    ValidationError,
    BadRequestError,
    InsufficientPermissionsError,
    TierLimitExceededError,
)
from app.utils.map_bounds import calculate_bounds, get_smart_viewport, bounds_to_mapbox_format
from app.utils.permissions import check_property_limit, check_featured_limit
from app.utils.query_params import (
    ParamSource,
    WORLD_BOUNDS,
    build_filter_params,
    has_map_params,
    parse_bounds_params,
    parse_filter_params,
    parse_map_params,
    validate_bounds_params,
    viewport_to_bounds,
)
from app.utils.serialization import decimal_to_number, serialize_agent, serialize_properties
from app.utils.slug import parse_id_slug_param
import uuid
import logging

logger = logging.getLogger(__name__)

MAP_RESULT_LIMIT = 1000
MAX_CITY_QUERY_LENGTH = 100
UUID_LENGTH = 36


class PropertyService:
    """
    Property service for managing property listings with comprehensive business logic.
    Handles CRUD actions, ownership validation, search and map queries.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new property listing owned by the current user.

        Args:
            property_data: Property creation data
            current_user: User creating the property

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If the user is not an agent or admin
            TierLimitExceededError: If the tier property or featured limit is reached
        """
        try:
            if current_user.role not in (UserRole.AGENT, UserRole.ADMIN):
                raise InsufficientPermissionsError("create properties")

            if not current_user.is_admin:
                current_count = await self.property_repo.count_by_agent(current_user.id)
                check = check_property_limit(current_user.subscription_tier, current_count)
                if not check.allowed:
                    logger.warning(f"Property limit reached for user {current_user.id} ({current_count})")
                    raise TierLimitExceededError(check.reason, check.limit)

                if property_data.is_featured:
                    await self._check_featured_limit(current_user)

            create_data = property_data.model_dump()
            create_data["agent_id"] = current_user.id

            property_obj = await self.property_repo.create_property(create_data)
            invalidate_property_pages()

            logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
            return property_obj

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

    async def _check_featured_limit(self, owner: User) -> None:
        current_featured = await self.property_repo.count_featured_by_agent(owner.id)
        check = check_featured_limit(owner.subscription_tier, current_featured)
        if not check.allowed:
            logger.warning(f"Featured limit reached for user {owner.id} ({current_featured})")
            raise TierLimitExceededError(check.reason, check.limit)

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Update a property owned by the current user (admins may update any).

        Turning `is_featured` on re-checks the owner's featured limit.

        Raises:
            NotFoundError: If the property doesn't exist
            ForbiddenError: If the user is neither owner nor admin
            TierLimitExceededError: If the featured limit is reached
        """
        try:
            if property_data.id is not None and property_data.id != property_id:
                raise ValidationError("Property ID in body does not match the URL")

            property_obj = await self.property_repo.find_by_id(property_id)
            if property_obj is None:
                raise NotFoundError("Property")

            update_data = property_data.model_dump(exclude_unset=True, exclude={"id"})

            if (
                update_data.get("is_featured") is True
                and not property_obj.is_featured
                and current_user.can_manage_property(property_obj.agent_id)
                and property_obj.agent is not None
                and not property_obj.agent.is_admin
            ):
                await self._check_featured_limit(property_obj.agent)

            updated = await self.property_repo.update_property(property_id, update_data, current_user)
            invalidate_property_pages()

            logger.info(f"Property {property_id} updated by {current_user.email}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> bool:
        """
        Delete a property with its images, favorites and appointments.

        Raises:
            NotFoundError: If the property doesn't exist
            ForbiddenError: If the user is neither owner nor admin
        """
        try:
            deleted = await self.property_repo.delete_property(property_id, current_user)
            invalidate_property_pages()

            logger.info(f"Property {property_id} deleted by {current_user.email}")
            return deleted

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

    async def get_property(self, id_or_slug: str) -> Property:
        """
        Get a property by `<uuid>` or `<uuid>-<slug>`.

        Raises:
            NotFoundError: If the id is malformed or the property doesn't exist
        """
        property_id, _ = parse_id_slug_param(id_or_slug)
        try:
            parsed_id = uuid.UUID(property_id)
        except ValueError:
            raise NotFoundError("Property")

        property_obj = await self.property_repo.find_by_id(parsed_id)
        if property_obj is None:
            raise NotFoundError("Property")

        logger.debug(f"Retrieved property: {parsed_id}")
        return property_obj

    async def get_property_preview(self, property_id: str) -> Dict[str, Any]:
        """
        Compact listing card for map popups and share links.

        Raises:
            ValidationError: If the id is not a 36-character UUID
            NotFoundError: If the property doesn't exist
        """
        if not property_id or len(property_id) != UUID_LENGTH:
            raise ValidationError("ID de propiedad inválido")
        try:
            parsed_id = uuid.UUID(property_id)
        except ValueError:
            raise ValidationError("ID de propiedad inválido")

        property_obj = await self.property_repo.find_by_id(parsed_id)
        if property_obj is None:
            raise NotFoundError("Property")

        primary_image = property_obj.primary_image
        price = decimal_to_number(property_obj.price)
        return {
            "id": str(property_obj.id),
            "title": property_obj.title,
            "price": price if price is not None else 0,
            "transaction_type": property_obj.transaction_type,
            "category": property_obj.category,
            "bedrooms": property_obj.bedrooms,
            "bathrooms": decimal_to_number(property_obj.bathrooms),
            "area": decimal_to_number(property_obj.area),
            "city": property_obj.city,
            "state": property_obj.state,
            "image_url": primary_image.url if primary_image else None,
            "agent": serialize_agent(property_obj.agent),
        }

    async def list_properties(
        self,
        filters: Optional[PropertyFilters] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Property], int]:
        """List properties matching the filters, newest first."""
        try:
            return await self.property_repo.list_properties(filters, skip=skip, take=take)
        except Exception as e:
            logger.error(f"Failed to list properties: {e}")
            raise BadRequestError(f"Failed to list properties: {str(e)}")

    def _resolve_map_bounds(self, params: ParamSource) -> Dict[str, float]:
        bounds = parse_bounds_params(params)
        if bounds is not None:
            return bounds

        if has_map_params(params):
            viewport = parse_map_params(params)
            return validate_bounds_params(
                viewport_to_bounds(viewport["latitude"], viewport["longitude"], viewport["zoom"]),
                clamp=False
            )

        return dict(WORLD_BOUNDS)

    async def get_map_properties(self, params: ParamSource) -> Dict[str, Any]:
        """
        Available listings inside the map bounds (or the viewport) of a query string.

        Args:
            params: Query parameters with bounds (`ne_lat`...) or a viewport
                (`lat`, `lng`, `zoom`) plus listing filters

        Returns:
            Dictionary with serialized properties, total, the queried bounds,
            the initial viewport and the mapbox `fitBounds` box
        """
        bounds = self._resolve_map_bounds(params)

        filters = parse_filter_params(params).model_copy(update={"status": PropertyStatus.AVAILABLE})

        properties, total = await self.property_repo.find_in_bounds(
            min_lat=bounds["sw_lat"],
            max_lat=bounds["ne_lat"],
            min_lng=bounds["sw_lng"],
            max_lng=bounds["ne_lng"],
            filters=filters,
            take=MAP_RESULT_LIMIT
        )

        serialized = serialize_properties(properties, include_agent=True)
        frame = calculate_bounds(serialized)

        logger.debug(f"Map query returned {len(serialized)} of {total} properties")
        return {
            "properties": serialized,
            "total": total,
            "bounds": bounds,
            "viewport": get_smart_viewport(serialized),
            "mapbox_bounds": bounds_to_mapbox_format(frame) if frame else None,
        }

    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 10,
        take: int = 20
    ) -> List[Property]:
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationError("Invalid coordinates")
        if radius_km <= 0:
            raise ValidationError("Radius must be positive")
        return await self.property_repo.find_nearby(latitude, longitude, radius_km=radius_km, take=take)

    async def get_price_range(self, filters: Optional[PropertyFilters] = None) -> Dict[str, float]:
        """Cached (min, max) price of listings matching the filters."""
        filters = filters or PropertyFilters()
        key = response_cache.make_key("price-range", build_filter_params(filters))

        cached = response_cache.get(PROPERTIES_TAG, key)
        if cached is not None:
            return cached

        min_price, max_price = await self.property_repo.get_price_range(filters)
        result = {"min_price": min_price, "max_price": max_price}
        response_cache.set(PROPERTIES_TAG, key, result)
        return result

    async def get_price_distribution(
        self,
        filters: Optional[PropertyFilters] = None,
        bucket_size: int = 10000
    ) -> List[Dict[str, Any]]:
        """Cached price histogram of available listings."""
        filters = filters or PropertyFilters()
        key = response_cache.make_key("price-distribution", build_filter_params(filters), bucket_size)

        cached = response_cache.get(PROPERTIES_TAG, key)
        if cached is not None:
            return cached

        result = await self.property_repo.get_price_distribution(filters, bucket_size=bucket_size)
        response_cache.set(PROPERTIES_TAG, key, result)
        return result

    async def get_cities_autocomplete(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        return await self.property_repo.get_cities_autocomplete(query, limit=limit)

    async def search_cities(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """
        City suggestions for the search box.

        Raises:
            ValidationError: If the query exceeds 100 characters
        """
        query = (query or "").strip()
        if len(query) > MAX_CITY_QUERY_LENGTH:
            raise ValidationError("Búsqueda demasiado larga")
        if not query:
            return []
        return await self.property_repo.get_cities_autocomplete(query)

    async def get_all_cities(self) -> List[Dict[str, Any]]:
        """Cached list of every city with listings."""
        key = response_cache.make_key("cities")
        cached = response_cache.get(PROPERTIES_TAG, key)
        if cached is not None:
            return cached

        cities = await self.property_repo.get_cities()
        response_cache.set(PROPERTIES_TAG, key, cities)
        return cities
