"""
Property repository for managing listings with filtering, map and aggregate queries.
Every listing query is built from a decoded `PropertyFilters` object.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from sqlalchemy.orm import selectinload
from app.repositories.base import BaseRepository
from app.models.property import Property, PropertyStatus
from app.models.user import User
from app.models.favorite import Favorite
from app.models.appointment import Appointment
from app.models.social import PropertyShare, PropertyView
from app.schemas.property import PropertyFilters
from app.utils.exceptions import NotFoundError, ForbiddenError, ValidationError
from app.utils.slug import generate_slug
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import math
import uuid
import logging

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111
SHARE_WEIGHT = 3


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Agent and images are loaded with every listing so rows can be serialized directly.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    def _listing_query(self):
        # Refresh rows already in the session so image changes show up
        return select(Property).options(
            selectinload(Property.agent),
            selectinload(Property.images)
        ).execution_options(populate_existing=True)

    def build_filter_conditions(self, filters: Optional[PropertyFilters]) -> List:
        """
        Build SQLAlchemy filter conditions from decoded listing filters.

        Args:
            filters: PropertyFilters instance (None means no filtering)

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []
        if filters is None:
            return conditions

        # Enum filters: a list becomes IN, a single value equality
        if filters.transaction_type is not None:
            if isinstance(filters.transaction_type, list):
                conditions.append(Property.transaction_type.in_(filters.transaction_type))
            else:
                conditions.append(Property.transaction_type == filters.transaction_type)

        if filters.category is not None:
            if isinstance(filters.category, list):
                conditions.append(Property.category.in_(filters.category))
            else:
                conditions.append(Property.category == filters.category)

        if filters.status is not None:
            conditions.append(Property.status == filters.status)

        if filters.agent_id is not None:
            conditions.append(Property.agent_id == filters.agent_id)

        # Location filters (case-insensitive partial match)
        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))
        if filters.state:
            conditions.append(Property.state.ilike(f"%{filters.state}%"))

        # Room minimums
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms >= Decimal(str(filters.bathrooms)))

        # Price range
        price_conditions = []
        if filters.min_price is not None:
            price_conditions.append(Property.price >= Decimal(str(filters.min_price)))
        if filters.max_price is not None:
            price_conditions.append(Property.price <= Decimal(str(filters.max_price)))
        if price_conditions:
            conditions.append(and_(*price_conditions))

        # Area range
        area_conditions = []
        if filters.min_area is not None:
            area_conditions.append(Property.area >= Decimal(str(filters.min_area)))
        if filters.max_area is not None:
            area_conditions.append(Property.area <= Decimal(str(filters.max_area)))
        if area_conditions:
            conditions.append(and_(*area_conditions))

        # Text search in title, description and address
        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.address.ilike(search_term)
                )
            )

        return conditions

    async def _count(self, conditions: List) -> int:
        count_query = select(func.count(Property.id))
        if conditions:
            count_query = count_query.where(and_(*conditions))
        result = await self.db.execute(count_query)
        return result.scalar() or 0

    async def list_properties(
        self,
        filters: Optional[PropertyFilters] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Property], int]:
        """
        List properties matching the filters, newest first.

        Args:
            filters: Decoded listing filters
            skip: Number of records to skip
            take: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self.build_filter_conditions(filters)

            query = self._listing_query()
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(desc(Property.created_at)).offset(skip).limit(take)

            total_count = await self._count(conditions)
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property listing returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to list properties: {e}")
            raise

    async def find_by_id(self, property_id: uuid.UUID) -> Optional[Property]:
        """Get a property with its agent and images."""
        try:
            query = self._listing_query().where(Property.id == property_id)
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get property {property_id}: {e}")
            raise

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property.

        Args:
            property_data: Column values, including `agent_id`

        Returns:
            Created property with relationships loaded
        """
        created = await self.create(property_data)
        logger.info(f"Created property: {created.title} (ID: {created.id})")
        return await self.find_by_id(created.id)

    async def _get_owned(self, property_id: uuid.UUID, current_user: User) -> Property:
        property_obj = await self.get_by_id(property_id)
        if property_obj is None:
            raise NotFoundError("Property")
        if not current_user.can_manage_property(property_obj.agent_id):
            logger.warning(f"User {current_user.id} denied access to property {property_id}")
            raise ForbiddenError("Unauthorized")
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: Dict[str, Any],
        current_user: User
    ) -> Property:
        """
        Update a property owned by the current user (or any property for admins).

        Every given value is written, so a None zip code clears the stored one.

        Raises:
            NotFoundError: If the property does not exist
            ForbiddenError: If the user neither owns it nor is an admin
        """
        await self._get_owned(property_id, current_user)

        data = {k: v for k, v in property_data.items() if k not in ("id", "agent_id")}
        updated = await self.update(property_id, data, skip_empty=False)
        logger.info(f"Updated property {property_id}")
        return await self.find_by_id(updated.id)

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> bool:
        """
        Delete a property and, through CASCADE, its images, favorites and appointments.

        Raises:
            NotFoundError: If the property does not exist
            ForbiddenError: If the user neither owns it nor is an admin
        """
        await self._get_owned(property_id, current_user)
        deleted = await self.delete(property_id)
        if deleted:
            logger.info(f"Deleted property {property_id}")
        return deleted

    async def find_in_bounds(
        self,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
        filters: Optional[PropertyFilters] = None,
        skip: int = 0,
        take: int = 1000
    ) -> Tuple[List[Property], int]:
        """
        Get geolocated properties inside a bounding box.

        Raises:
            ValidationError: If the bounds are out of range, inverted, or cross
                the antimeridian
        """
        if not (-90 <= min_lat <= 90 and -90 <= max_lat <= 90):
            raise ValidationError("Latitude bounds must be between -90 and 90")
        if not (-180 <= min_lng <= 180 and -180 <= max_lng <= 180):
            raise ValidationError("Longitude bounds must be between -180 and 180")
        if min_lat > max_lat:
            raise ValidationError("Minimum latitude must not exceed maximum latitude")
        if min_lng > max_lng:
            raise ValidationError("Bounds crossing the antimeridian are not supported")

        try:
            conditions = self.build_filter_conditions(filters)
            conditions.extend([
                Property.latitude.isnot(None),
                Property.longitude.isnot(None),
                Property.latitude >= Decimal(str(min_lat)),
                Property.latitude <= Decimal(str(max_lat)),
                Property.longitude >= Decimal(str(min_lng)),
                Property.longitude <= Decimal(str(max_lng)),
            ])

            query = (
                self._listing_query()
                .where(and_(*conditions))
                .order_by(desc(Property.created_at))
                .offset(skip)
                .limit(take)
            )

            total_count = await self._count(conditions)
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Found {len(properties)} of {total_count} properties in bounds")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to get properties in bounds: {e}")
            raise

    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 10,
        take: int = 20
    ) -> List[Property]:
        """
        Get available properties inside a square around a point.

        The box approximates the radius with 111 km per degree of latitude and
        111 * cos(lat) km per degree of longitude.
        """
        try:
            lat_delta = radius_km / KM_PER_DEGREE
            cos_lat = math.cos(math.radians(latitude))
            lng_delta = radius_km / (KM_PER_DEGREE * cos_lat) if abs(cos_lat) > 1e-9 else 180

            conditions = [
                Property.status == PropertyStatus.AVAILABLE,
                Property.latitude.isnot(None),
                Property.longitude.isnot(None),
                Property.latitude >= Decimal(str(latitude - lat_delta)),
                Property.latitude <= Decimal(str(latitude + lat_delta)),
                Property.longitude >= Decimal(str(longitude - lng_delta)),
                Property.longitude <= Decimal(str(longitude + lng_delta)),
            ]

            query = (
                self._listing_query()
                .where(and_(*conditions))
                .order_by(desc(Property.created_at))
                .limit(take)
            )

            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Found {len(properties)} properties within {radius_km}km")
            return properties
        except Exception as e:
            logger.error(f"Failed to get nearby properties: {e}")
            raise

    async def get_price_range(self, filters: Optional[PropertyFilters] = None) -> Tuple[float, float]:
        """Minimum and maximum price of matching properties, (0, 0) when none match."""
        conditions = self.build_filter_conditions(filters)
        query = select(func.min(Property.price), func.max(Property.price))
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(query)
        min_price, max_price = result.first()
        if min_price is None or max_price is None:
            return 0.0, 0.0
        return float(min_price), float(max_price)

    async def get_price_distribution(
        self,
        filters: Optional[PropertyFilters] = None,
        bucket_size: int = 10000
    ) -> List[Dict[str, Any]]:
        """
        Histogram of available listing prices.

        Args:
            filters: Decoded listing filters
            bucket_size: Width of each price bucket

        Returns:
            List of {"bucket": lower bound, "count": n}, sorted by bucket
        """
        if bucket_size <= 0:
            raise ValidationError("Bucket size must be positive")

        conditions = self.build_filter_conditions(filters)
        conditions.append(Property.status == PropertyStatus.AVAILABLE)

        result = await self.db.execute(select(Property.price).where(and_(*conditions)))

        buckets: Dict[int, int] = {}
        for price in result.scalars().all():
            bucket = math.floor(float(price) / bucket_size) * bucket_size
            buckets[bucket] = buckets.get(bucket, 0) + 1

        return [{"bucket": bucket, "count": buckets[bucket]} for bucket in sorted(buckets)]

    @staticmethod
    def _city_entry(city: str, state: Optional[str], count: int) -> Dict[str, Any]:
        return {
            "id": generate_slug(f"{city} {state or ''}"),
            "name": city,
            "state": state,
            "property_count": count,
        }

    async def _group_cities(self, conditions: List, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        property_count = func.count(Property.id).label("property_count")
        query = (
            select(Property.city, Property.state, property_count)
            .where(and_(Property.city.isnot(None), *conditions))
            .group_by(Property.city, Property.state)
            .order_by(desc(property_count), Property.city)
        )
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [self._city_entry(city, state, count) for city, state, count in result.all()]

    async def get_cities_autocomplete(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Cities with available listings whose name contains the query.

        Queries shorter than two characters return an empty list.
        """
        query = (query or "").strip()
        if len(query) < 2:
            return []

        conditions = [
            Property.status == PropertyStatus.AVAILABLE,
            Property.city.ilike(f"%{query}%"),
        ]
        return await self._group_cities(conditions, limit=limit)

    async def get_cities(self, query: Optional[str] = None) -> List[Dict[str, Any]]:
        """Every city with its listing count, optionally filtered by name."""
        conditions = []
        if query and query.strip():
            conditions.append(Property.city.ilike(f"%{query.strip()}%"))
        return await self._group_cities(conditions)

    async def count_by_agent(self, agent_id: uuid.UUID) -> int:
        return await self.count({"agent_id": agent_id})

    async def count_featured_by_agent(self, agent_id: uuid.UUID) -> int:
        return await self.count({"agent_id": agent_id, "is_featured": True})

    async def count_available_by_agents(self, agent_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """AVAILABLE listing counts per agent, filled with 0 for every id."""
        counts = {agent_id: 0 for agent_id in agent_ids}
        if not agent_ids:
            return counts

        query = (
            select(Property.agent_id, func.count(Property.id))
            .where(and_(Property.agent_id.in_(agent_ids), Property.status == PropertyStatus.AVAILABLE))
            .group_by(Property.agent_id)
        )
        result = await self.db.execute(query)
        for agent_id, count in result.all():
            counts[agent_id] = count
        return counts

    async def get_trending(self, limit: int = 10) -> List[Tuple[Property, int, int]]:
        """
        Available listings ranked by engagement, where a share counts as
        SHARE_WEIGHT views. Ties go to the newest listing.

        Args:
            limit: Maximum number of listings to return

        Returns:
            (property, share_count, view_count) rows, highest score first
        """
        try:
            share_count = (
                select(func.count(PropertyShare.id))
                .where(PropertyShare.property_id == Property.id)
                .correlate(Property)
                .scalar_subquery()
            )
            view_count = (
                select(func.count(PropertyView.id))
                .where(PropertyView.property_id == Property.id)
                .correlate(Property)
                .scalar_subquery()
            )

            query = (
                self._listing_query()
                .add_columns(share_count, view_count)
                .where(Property.status == PropertyStatus.AVAILABLE)
                .order_by(desc(share_count * SHARE_WEIGHT + view_count), desc(Property.created_at))
                .limit(limit)
            )
            result = await self.db.execute(query)
            rows = [(row[0], row[1] or 0, row[2] or 0) for row in result.all()]

            logger.debug(f"Trending listing returned {len(rows)} properties")
            return rows
        except Exception as e:
            logger.error(f"Failed to rank trending properties: {e}")
            raise

    async def list_for_admin(
        self,
        status: Optional[PropertyStatus] = None,
        search: Optional[str] = None,
        agent_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        take: int = 20
    ) -> Tuple[List[Tuple[Property, int, int]], int]:
        """
        Every listing with its favorite and appointment counts, newest first.

        Args:
            status: Optional status filter
            search: Case-insensitive match on title, address or city
            agent_id: Optional owner filter
            skip: Number of records to skip
            take: Maximum number of records to return

        Returns:
            Tuple of ((property, favorite_count, appointment_count) rows, total count)
        """
        try:
            conditions = []
            if status:
                conditions.append(Property.status == status)
            if agent_id:
                conditions.append(Property.agent_id == agent_id)
            if search and search.strip():
                search_term = f"%{search.strip()}%"
                conditions.append(
                    or_(
                        Property.title.ilike(search_term),
                        Property.address.ilike(search_term),
                        Property.city.ilike(search_term)
                    )
                )

            favorite_count = (
                select(func.count(Favorite.id))
                .where(Favorite.property_id == Property.id)
                .correlate(Property)
                .scalar_subquery()
            )
            appointment_count = (
                select(func.count(Appointment.id))
                .where(Appointment.property_id == Property.id)
                .correlate(Property)
                .scalar_subquery()
            )

            query = select(Property, favorite_count, appointment_count).options(selectinload(Property.agent))
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(desc(Property.created_at)).offset(skip).limit(take)

            total_count = await self._count(conditions)
            result = await self.db.execute(query)
            rows = [(row[0], row[1] or 0, row[2] or 0) for row in result.all()]

            logger.debug(f"Admin property listing returned {len(rows)} of {total_count}")
            return rows, total_count
        except Exception as e:
            logger.error(f"Failed to list properties for admin: {e}")
            raise

    async def update_status(self, property_id: uuid.UUID, status: PropertyStatus) -> Optional[Property]:
        updated = await self.update(property_id, {"status": status})
        if updated is None:
            return None
        logger.info(f"Property {property_id} status set to {status.value}")
        return await self.find_by_id(property_id)
