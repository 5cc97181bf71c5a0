"""
Map API endpoint: available listings inside the visible area.
"""

from fastapi import APIRouter, Depends, Request, status

from app.services.property import PropertyService
from app.schemas.property import MapPropertiesResponse
from app.schemas.error import get_error_responses
from app.utils.dependencies import get_property_service


router = APIRouter(prefix="/map", tags=["Map"])


@router.get(
    "/properties",
    response_model=MapPropertiesResponse,
    status_code=status.HTTP_200_OK,
    summary="Listings on the map",
    description=(
        "Available listings inside `ne_lat`, `ne_lng`, `sw_lat`, `sw_lng` bounds, or inside the "
        "box derived from a `lat`, `lng`, `zoom` viewport. Listing filters apply as on /properties."
    ),
    responses=get_error_responses(422)
)
async def get_map_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> MapPropertiesResponse:
    return await property_service.get_map_properties(request.query_params)
