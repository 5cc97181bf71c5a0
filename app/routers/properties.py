"""
Property API endpoints: listing actions, search, filters and listing aggregates.
Listing filters are read from the raw query string so repeated and comma-separated
values share one decoder with the map and share links.
"""

from fastapi import APIRouter, Depends, Request, status, Query, Path
from typing import Optional, List
from uuid import UUID

from app.config import settings
from app.models.user import User
from app.services.error_handler import ErrorHandlerService
from app.services.property import PropertyService
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PriceRangeResponse,
    PriceBucket,
    CitySuggestion,
    PropertyPreview
)
from app.schemas.error import get_crud_error_responses, get_error_responses
from app.utils.dependencies import get_current_active_user, get_property_service
from app.utils.exceptions import APIException
from app.utils.query_params import parse_filter_params
from app.utils.rate_limit import rate_limit
from app.utils.serialization import serialize_properties, serialize_property


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description=(
        "Paginated listings. Filters: transaction_type, category (comma-separated or repeated), "
        "status, agent_id, city, state, bedrooms, bathrooms, min_price, max_price, min_area, "
        "max_area and search."
    ),
    responses=get_error_responses(400, 422)
)
async def list_properties(
    request: Request,
    skip: int = Query(0, ge=0, description="Number of properties to skip"),
    take: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Page size"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    filters = parse_filter_params(request.query_params)
    properties, total = await property_service.list_properties(filters, skip=skip, take=take)

    return PropertyListResponse(
        properties=serialize_properties(properties, include_agent=True),
        total=total,
        skip=skip,
        take=take,
        has_next=skip + len(properties) < total
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires agent or admin role and a free slot in the plan.",
    responses=get_crud_error_responses(201),
    dependencies=[Depends(rate_limit("property-create"))]
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Create a new property listing.

    Returns:
        Action result with the created property, or the failure with
        `upgrade_required` when the plan limit is reached
    """
    try:
        property_obj = await property_service.create_property(property_data, current_user)
        return ErrorHandlerService.action_success(property=serialize_property(property_obj, include_agent=True))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "create_property")


@router.get(
    "/price-range",
    response_model=PriceRangeResponse,
    summary="Price range of matching listings"
)
async def get_price_range(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> PriceRangeResponse:
    filters = parse_filter_params(request.query_params)
    return PriceRangeResponse(**await property_service.get_price_range(filters))


@router.get(
    "/price-distribution",
    response_model=List[PriceBucket],
    summary="Price histogram of available listings",
    responses=get_error_responses(422)
)
async def get_price_distribution(
    request: Request,
    bucket_size: int = Query(10000, gt=0, description="Bucket width"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PriceBucket]:
    filters = parse_filter_params(request.query_params)
    return await property_service.get_price_distribution(filters, bucket_size=bucket_size)


@router.get(
    "/cities",
    response_model=List[CitySuggestion],
    summary="Every city with listings"
)
async def get_cities(
    property_service: PropertyService = Depends(get_property_service)
) -> List[CitySuggestion]:
    return await property_service.get_all_cities()


@router.get(
    "/cities/autocomplete",
    response_model=List[CitySuggestion],
    summary="City autocomplete",
    description="Cities with available listings matching the query (at least 2 characters)."
)
async def autocomplete_cities(
    q: str = Query("", description="City prefix or fragment"),
    limit: int = Query(10, ge=1, le=50),
    property_service: PropertyService = Depends(get_property_service)
) -> List[CitySuggestion]:
    return await property_service.get_cities_autocomplete(q, limit=limit)


@router.get(
    "/cities/search",
    response_model=List[CitySuggestion],
    summary="City search",
    responses=get_error_responses(422)
)
async def search_cities(
    q: Optional[str] = Query(None, description="Search text (max 100 characters)"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[CitySuggestion]:
    return await property_service.search_cities(q)


@router.get(
    "/nearby",
    response_model=List[PropertyResponse],
    summary="Available listings near a point",
    responses=get_error_responses(422)
)
async def find_nearby(
    lat: float = Query(..., description="Latitude"),
    lng: float = Query(..., description="Longitude"),
    radius_km: float = Query(10, gt=0, le=500, description="Search radius in kilometers"),
    take: int = Query(20, ge=1, le=100),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.find_nearby(lat, lng, radius_km=radius_km, take=take)
    return serialize_properties(properties, include_agent=True)


@router.get(
    "/{property_id}/preview",
    response_model=PropertyPreview,
    summary="Listing preview card",
    responses=get_error_responses(404, 422)
)
async def get_property_preview(
    property_id: str = Path(..., description="Property UUID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyPreview:
    return await property_service.get_property_preview(property_id)


@router.get(
    "/{id_or_slug}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    description="Accepts the bare UUID or the `<uuid>-<slug>` form used in share links.",
    responses=get_error_responses(404)
)
async def get_property(
    id_or_slug: str = Path(..., description="Property UUID, optionally followed by its slug"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(id_or_slug)
    return serialize_property(property_obj, include_agent=True)


@router.put(
    "/{property_id}",
    summary="Update property",
    description="Update a property listing. Only the owner or an admin can update.",
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        property_obj = await property_service.update_property(property_id, property_data, current_user)
        return ErrorHandlerService.action_success(property=serialize_property(property_obj, include_agent=True))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_property")


@router.delete(
    "/{property_id}",
    summary="Delete property",
    description="Delete a listing with its images, favorites and appointments. Owner or admin only.",
    responses=get_crud_error_responses()
)
async def delete_property(
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        await property_service.delete_property(property_id, current_user)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "delete_property")
