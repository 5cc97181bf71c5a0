"""
Favorites API endpoints.
Anonymous visitors can read favorite state (always empty); changes need an account.
"""

import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status

from app.models.user import User
from app.services.error_handler import ErrorHandlerService
from app.services.favorite import FavoriteService, FAVORITE_DETAILS_LIMIT
from app.schemas.favorite import FavoriteDetailsResponse, FavoriteIdsResponse, FavoriteStatusResponse
from app.schemas.error import get_action_responses, get_auth_error_responses
from app.utils.dependencies import get_current_active_user, get_favorite_service, get_optional_current_user
from app.utils.exceptions import APIException
from app.utils.rate_limit import rate_limit
from app.utils.serialization import serialize_properties

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=FavoriteIdsResponse,
    status_code=status.HTTP_200_OK,
    summary="IDs of the current user's favorites"
)
async def get_favorite_ids(
    current_user: Optional[User] = Depends(get_optional_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteIdsResponse:
    property_ids = await favorite_service.get_user_favorite_ids(current_user)
    return FavoriteIdsResponse(property_ids=property_ids)


@router.get(
    "/details",
    response_model=FavoriteDetailsResponse,
    summary="Most recent favorites with listing details",
    responses=get_auth_error_responses()
)
async def get_favorite_details(
    limit: int = Query(FAVORITE_DETAILS_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteDetailsResponse:
    properties = await favorite_service.get_favorites_with_details(current_user, limit=limit)
    return FavoriteDetailsResponse(
        properties=serialize_properties(properties, include_agent=True),
        total=len(properties)
    )


@router.post(
    "/{property_id}/toggle",
    summary="Add or remove a favorite",
    description="Adding a favorite registers the user as a lead of the listing agent.",
    responses=get_action_responses(200, 400, 401, 404, 429),
    dependencies=[Depends(rate_limit("favorite"))]
)
async def toggle_favorite(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
):
    try:
        result = await favorite_service.toggle_favorite(property_id, current_user)
        return ErrorHandlerService.action_success(**result)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "toggle_favorite")


@router.get(
    "/{property_id}/status",
    response_model=FavoriteStatusResponse,
    summary="Whether a listing is in the user's favorites"
)
async def get_favorite_status(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteStatusResponse:
    is_favorite = await favorite_service.check_if_favorite(property_id, current_user)
    return FavoriteStatusResponse(property_id=str(property_id), is_favorite=is_favorite)


@router.delete(
    "",
    summary="Clear all favorites",
    responses=get_action_responses(200, 400, 401)
)
async def clear_favorites(
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
):
    try:
        removed = await favorite_service.clear_favorites(current_user)
        return ErrorHandlerService.action_success(removed=removed)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "clear_favorites")
