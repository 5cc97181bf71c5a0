"""
Image service for property galleries.
Handles uploads through the storage backend, tier image limits, ordering and cleanup.
"""

import uuid
import logging
from typing import List, Optional, Dict, Any
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.image import PropertyImage
from app.models.property import Property
from app.models.user import User
from app.repositories.image import ImageRepository
from app.repositories.property import PropertyRepository
from app.schemas.image import UploadedImageIn
from app.utils.cache import invalidate_property_pages
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    TierLimitExceededError,
    ValidationError,
)
from app.utils.permissions import can_upload_image
from app.utils.storage import (
    StorageBackend,
    build_storage_path,
    get_storage_backend,
    validate_upload,
    verify_image_content,
)

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property image uploads and storage."""

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageBackend] = None):
        self.db = db_session
        self.image_repo = ImageRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.storage = storage or get_storage_backend()

    async def _get_managed_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        property_obj = await self.property_repo.find_by_id(property_id)
        if property_obj is None:
            raise NotFoundError("Property")
        if not current_user.can_manage_property(property_obj.agent_id):
            logger.warning(f"User {current_user.id} denied image access to property {property_id}")
            raise ForbiddenError("Unauthorized")
        return property_obj

    async def _check_image_limit(self, property_obj: Property, new_count: int) -> int:
        """
        Verify the owner's tier allows `new_count` more images.

        Returns:
            Number of images the property already has
        """
        existing = await self.image_repo.count_by_property(property_obj.id)
        owner = property_obj.agent
        if owner is not None and owner.is_admin:
            return existing

        tier = owner.subscription_tier if owner is not None else None
        check = can_upload_image(tier, existing + new_count)
        if not check.allowed:
            logger.warning(
                f"Image limit reached for property {property_obj.id}: {existing} + {new_count} > {check.limit}"
            )
            raise TierLimitExceededError(check.reason, check.limit)
        return existing

    def _image_rows(
        self,
        property_obj: Property,
        images: List[Dict[str, Any]],
        existing: int
    ) -> List[Dict[str, Any]]:
        return [
            {
                "property_id": property_obj.id,
                "url": image["url"],
                "alt": image.get("alt") or property_obj.title,
                "order": existing + index,
            }
            for index, image in enumerate(images)
        ]

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Validate, store and attach uploaded image files.

        Args:
            property_id: ID of the property
            files: Multipart uploads
            current_user: Owner of the property or an admin

        Returns:
            Created images in upload order

        Raises:
            ValidationError: If no files were sent
            FileUploadError: If a file is empty or not a real image
            UnsupportedFileTypeError: If a file type is not allowed
            FileSizeExceededError: If a file is too large
            TierLimitExceededError: If the gallery would exceed the tier limit
        """
        if not files:
            raise ValidationError("At least one image is required")

        property_obj = await self._get_managed_property(property_id, current_user)

        prepared = []
        for upload in files:
            content = await upload.read()
            extension = validate_upload(upload.filename, upload.content_type, len(content))
            verify_image_content(content, upload.content_type)
            prepared.append((extension, content))

        existing = await self._check_image_limit(property_obj, len(prepared))

        stored_urls: List[str] = []
        try:
            for extension, content in prepared:
                path = build_storage_path(property_id, extension)
                stored_urls.append(await self.storage.save(path, content))

            images = await self.image_repo.create_many(
                self._image_rows(property_obj, [{"url": url} for url in stored_urls], existing)
            )
        except Exception as e:
            for url in stored_urls:
                await self.storage.delete(url)
            if isinstance(e, APIException):
                raise
            logger.error(f"Failed to upload images for property {property_id}: {e}")
            raise BadRequestError(f"Failed to upload images: {str(e)}")

        invalidate_property_pages()
        logger.info(f"Uploaded {len(images)} images to property {property_id}")
        return images

    async def save_uploaded_images(
        self,
        property_id: uuid.UUID,
        images: List[UploadedImageIn],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Attach images that were already stored by the client uploader.

        Raises:
            TierLimitExceededError: If the gallery would exceed the tier limit
        """
        try:
            property_obj = await self._get_managed_property(property_id, current_user)
            existing = await self._check_image_limit(property_obj, len(images))

            created = await self.image_repo.create_many(
                self._image_rows(property_obj, [image.model_dump() for image in images], existing)
            )
            invalidate_property_pages()

            logger.info(f"Saved {len(created)} images for property {property_id}")
            return created

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to save images for property {property_id}: {e}")
            raise BadRequestError(f"Failed to save images: {str(e)}")

    async def get_property_images(self, property_id: uuid.UUID) -> List[PropertyImage]:
        if not await self.property_repo.exists(property_id):
            raise NotFoundError("Property")
        return await self.image_repo.find_by_property(property_id)

    async def delete_image(self, image_id: uuid.UUID, current_user: User) -> bool:
        """
        Remove an image: the stored file first, then the record.

        Raises:
            NotFoundError: If the image doesn't exist
            ForbiddenError: If the user can't manage the property
        """
        try:
            image = await self.image_repo.find_by_id(image_id)
            if image is None:
                raise NotFoundError("Image", detail="Imagen no encontrada")

            await self._get_managed_property(image.property_id, current_user)

            removed_file = await self.storage.delete(image.url)
            if not removed_file:
                logger.debug(f"No stored file removed for image {image_id}")

            deleted = await self.image_repo.delete(image_id)
            invalidate_property_pages()

            logger.info(f"Deleted image {image_id} from property {image.property_id}")
            return deleted

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete image {image_id}: {e}")
            raise BadRequestError(f"Failed to delete image: {str(e)}")

    async def reorder_images(
        self,
        property_id: uuid.UUID,
        image_ids: List[uuid.UUID],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Set each image's order to its position in `image_ids`, in one transaction.

        Raises:
            ValidationError: If any ID is not an image of the property
        """
        try:
            await self._get_managed_property(property_id, current_user)

            foreign = await self.image_repo.find_foreign_ids(property_id, image_ids)
            if foreign:
                raise ValidationError("Some images do not belong to this property")

            await self.image_repo.update_many_orders(
                [(image_id, index) for index, image_id in enumerate(image_ids)]
            )
            invalidate_property_pages()

            logger.info(f"Reordered {len(image_ids)} images of property {property_id}")
            return await self.image_repo.find_by_property(property_id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to reorder images of property {property_id}: {e}")
            raise BadRequestError(f"Failed to reorder images: {str(e)}")
