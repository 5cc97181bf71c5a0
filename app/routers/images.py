"""
Image management API endpoints.
Handles gallery uploads, ordering and deletion for property listings.
"""

import uuid
from typing import List
from fastapi import APIRouter, Depends, UploadFile, File, Path, status

from app.models.user import User
from app.services.error_handler import ErrorHandlerService
from app.services.image import ImageService
from app.schemas.image import ImageListResponse, ReorderImagesRequest, SaveImagesRequest
from app.schemas.error import get_crud_error_responses, get_error_responses
from app.utils.dependencies import get_current_active_user, get_image_service
from app.utils.exceptions import APIException

router = APIRouter(tags=["Images"])


def _images_payload(images) -> List[dict]:
    return [image.to_dict() for image in images]


@router.post(
    "/properties/{property_id}/images",
    status_code=status.HTTP_201_CREATED,
    summary="Upload images for a property",
    description="Upload JPEG, PNG or WebP files (5MB each). The gallery size is limited by the owner's plan.",
    responses=get_crud_error_responses(201)
)
async def upload_property_images(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    files: List[UploadFile] = File(..., description="Image files to upload"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
):
    try:
        images = await image_service.upload_images(property_id, files, current_user)
        return ErrorHandlerService.action_success(images=_images_payload(images))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "upload_images")


@router.post(
    "/properties/{property_id}/images/batch",
    status_code=status.HTTP_201_CREATED,
    summary="Attach already uploaded images",
    description="Register images that the client uploaded to storage directly.",
    responses=get_crud_error_responses(201)
)
async def save_uploaded_images(
    request_data: SaveImagesRequest,
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
):
    try:
        images = await image_service.save_uploaded_images(property_id, request_data.images, current_user)
        return ErrorHandlerService.action_success(images=_images_payload(images))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "save_uploaded_images")


@router.put(
    "/properties/{property_id}/images/order",
    summary="Reorder a property's images",
    description="Each image takes its position in `image_ids` as its display order.",
    responses=get_crud_error_responses()
)
async def reorder_images(
    request_data: ReorderImagesRequest,
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
):
    try:
        images = await image_service.reorder_images(property_id, request_data.image_ids, current_user)
        return ErrorHandlerService.action_success(images=_images_payload(images))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "reorder_images")


@router.get(
    "/properties/{property_id}/images",
    response_model=ImageListResponse,
    summary="List a property's images",
    responses=get_error_responses(404)
)
async def get_property_images(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    image_service: ImageService = Depends(get_image_service)
) -> ImageListResponse:
    images = await image_service.get_property_images(property_id)
    return ImageListResponse(
        property_id=str(property_id),
        images=_images_payload(images),
        total=len(images)
    )


@router.delete(
    "/images/{image_id}",
    summary="Delete an image",
    description="Remove the stored file and the image record.",
    responses=get_crud_error_responses()
)
async def delete_image(
    image_id: uuid.UUID = Path(..., description="Image unique identifier"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
):
    try:
        await image_service.delete_image(image_id, current_user)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "delete_image")
