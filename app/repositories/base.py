"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.orm import selectinload
from app.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
from datetime import datetime
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Uses async SQLAlchemy for all database operations with proper error handling.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    column = getattr(self.model, field)
                    if isinstance(value, list):
                        query = query.where(column.in_(value))
                    else:
                        query = query.where(column == value)
        return query

    def _with_relationships(self, query):
        for relationship in self.model.__mapper__.relationships:
            query = query.options(selectinload(getattr(self.model, relationship.key)))
        return query

    async def reload(self, id: uuid.UUID, load_relationships: bool = False) -> Optional[ModelType]:
        """
        Re-read a record, overwriting any state already held by the session.
        Used after writes so eagerly loaded relationships reflect the new rows.
        """
        query = select(self.model).where(self.model.id == id).execution_options(populate_existing=True)
        if load_relationships:
            query = self._with_relationships(query)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return await self.reload(db_obj.id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID, load_relationships: bool = False) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve
            load_relationships: Whether to eagerly load every relationship

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)

            if load_relationships:
                query = self._with_relationships(query)

            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
            else:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def get_multi(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        load_relationships: bool = False
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.

        Args:
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return
            filters: Dictionary of field filters (lists become IN)
            order_by: Field name to order by (prefix with '-' for descending)
            load_relationships: Whether to eagerly load relationships

        Returns:
            List of model instances
        """
        try:
            query = self._apply_filters(select(self.model), filters)

            if order_by:
                descending = order_by.startswith("-")
                field_name = order_by.lstrip("-")
                if hasattr(self.model, field_name):
                    column = getattr(self.model, field_name)
                    query = query.order_by(column.desc() if descending else column)
            else:
                query = query.order_by(self.model.created_at.desc())

            query = query.offset(skip).limit(limit)

            if load_relationships:
                query = self._with_relationships(query)

            result = await self.db.execute(query)
            objects = result.scalars().all()

            logger.debug(f"Retrieved {len(objects)} {self.model.__name__} records")
            return list(objects)
        except Exception as e:
            logger.error(f"Failed to get multiple {self.model.__name__} records: {e}")
            raise

    async def update(
        self,
        id: uuid.UUID,
        obj_in: Dict[str, Any],
        skip_empty: bool = True
    ) -> Optional[ModelType]:
        """
        Update a record by its ID.

        Args:
            id: UUID of the record to update
            obj_in: Dictionary of field values to update
            skip_empty: Ignore None values and empty strings; when False
                every given value is written, clearing nullable columns

        Returns:
            Updated model instance if found, None otherwise

        Raises:
            Exception: If database operation fails
        """
        try:
            if skip_empty:
                update_data = {k: v for k, v in obj_in.items() if v is not None and v != ""}
            else:
                update_data = dict(obj_in)

            db_obj = await self.get_by_id(id)
            if db_obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found for update")
                return None

            if not update_data:
                logger.warning(f"No valid data provided for updating {self.model.__name__} {id}")
                return db_obj

            for field, value in update_data.items():
                if hasattr(self.model, field):
                    setattr(db_obj, field, value)

            await self.db.commit()
            logger.debug(f"Updated {self.model.__name__} with id: {id}")
            return await self.reload(id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {id}: {e}")
            raise

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record by its ID.
        Dependent rows are removed by the database (ON DELETE CASCADE).

        Returns:
            True if record was deleted, False if not found
        """
        try:
            stmt = delete(self.model).where(self.model.id == id)
            result = await self.db.execute(stmt)
            await self.db.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            else:
                logger.debug(f"{self.model.__name__} with id {id} not found for deletion")

            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count records with optional filtering.

        Args:
            filters: Dictionary of field filters

        Returns:
            Number of matching records
        """
        try:
            query = self._apply_filters(select(func.count(self.model.id)), filters)
            result = await self.db.execute(query)
            count = result.scalar() or 0

            logger.debug(f"Counted {count} {self.model.__name__} records")
            return count
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise

    async def exists(self, id: uuid.UUID) -> bool:
        """Check if a record exists by its ID."""
        try:
            query = select(func.count(self.model.id)).where(self.model.id == id)
            result = await self.db.execute(query)
            return (result.scalar() or 0) > 0
        except Exception as e:
            logger.error(f"Failed to check existence of {self.model.__name__} {id}: {e}")
            raise

    async def get_by_field(self, field: str, value: Any, load_relationships: bool = False) -> Optional[ModelType]:
        """
        Get a record by a specific field value.

        Args:
            field: Field name to search by
            value: Value to search for
            load_relationships: Whether to eagerly load relationships

        Returns:
            Model instance if found, None otherwise

        Raises:
            ValueError: If the field does not exist on the model
        """
        if not hasattr(self.model, field):
            raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")

        try:
            query = select(self.model).where(getattr(self.model, field) == value)

            if load_relationships:
                query = self._with_relationships(query)

            result = await self.db.execute(query)
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by {field}={value}: {e}")
            raise

    async def bulk_create(self, objects_in: List[Dict[str, Any]]) -> List[ModelType]:
        """
        Create multiple records in a single transaction.

        Args:
            objects_in: List of dictionaries with field values

        Returns:
            List of created model instances, in input order
        """
        try:
            db_objects = [self.model(**obj_data) for obj_data in objects_in]
            self.db.add_all(db_objects)
            await self.db.commit()

            logger.debug(f"Bulk created {len(db_objects)} {self.model.__name__} records")
            return db_objects
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to bulk create {self.model.__name__} records: {e}")
            raise

    async def bulk_delete(self, ids: List[uuid.UUID]) -> int:
        """
        Delete multiple records by their IDs in a single transaction.

        Returns:
            Number of records deleted
        """
        if not ids:
            return 0

        try:
            stmt = delete(self.model).where(self.model.id.in_(ids))
            result = await self.db.execute(stmt)
            await self.db.commit()

            deleted_count = result.rowcount
            logger.debug(f"Bulk deleted {deleted_count} {self.model.__name__} records")
            return deleted_count
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to bulk delete {self.model.__name__} records: {e}")
            raise

    async def count_grouped(self, field: str) -> Dict[Any, int]:
        """
        Count records grouped by a column.

        Returns:
            Mapping column value -> count (values with no rows are absent)
        """
        column = getattr(self.model, field)
        query = select(column, func.count(self.model.id)).group_by(column)
        result = await self.db.execute(query)
        return {value: count for value, count in result.all()}

    async def count_created_since(self, since: datetime) -> int:
        query = select(func.count(self.model.id)).where(self.model.created_at >= since)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_created_since(self, since: datetime) -> List[datetime]:
        """Creation timestamps of records created at or after `since`, oldest first."""
        query = (
            select(self.model.created_at)
            .where(self.model.created_at >= since)
            .order_by(self.model.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
