"""
Listing engagement endpoints: view and share tracking, stats and trending listings.
Registered ahead of the property router so /properties/trending is not read as a slug.
"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, Path, Query, Request

from app.models.user import User
from app.services.error_handler import ErrorHandlerService
from app.services.social import SocialService, TRENDING_DEFAULT_LIMIT, TRENDING_MAX_LIMIT
from app.schemas.social import ShareRequest, SocialStatsResponse, TrendingProperty
from app.schemas.error import get_action_responses, get_error_responses
from app.utils.dependencies import get_optional_current_user, get_social_service
from app.utils.exceptions import APIException
from app.utils.rate_limit import get_client_ip, rate_limit

router = APIRouter(prefix="/properties", tags=["Social"])


@router.get(
    "/trending",
    response_model=List[TrendingProperty],
    summary="Most shared and viewed available listings"
)
async def get_trending(
    limit: int = Query(TRENDING_DEFAULT_LIMIT, ge=1, le=TRENDING_MAX_LIMIT),
    social_service: SocialService = Depends(get_social_service)
) -> List[TrendingProperty]:
    return await social_service.get_trending(limit)


@router.post(
    "/{property_id}/views",
    summary="Track a listing view",
    responses=get_action_responses(200, 400, 404, 429),
    dependencies=[Depends(rate_limit("default"))]
)
async def track_view(
    request: Request,
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    user_agent: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    try:
        await social_service.track_view(property_id, current_user, get_client_ip(request), user_agent)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "track_view")


@router.post(
    "/{property_id}/shares",
    summary="Track a listing share",
    responses=get_action_responses(200, 400, 404, 429),
    dependencies=[Depends(rate_limit("default"))]
)
async def track_share(
    request: Request,
    share: ShareRequest,
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    user_agent: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    try:
        await social_service.track_share(
            property_id, share.platform, current_user, get_client_ip(request), user_agent
        )
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "track_share")


@router.get(
    "/{property_id}/social-stats",
    response_model=SocialStatsResponse,
    summary="Share and view totals of a listing",
    responses=get_error_responses(404)
)
async def get_social_stats(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    social_service: SocialService = Depends(get_social_service)
) -> SocialStatsResponse:
    return SocialStatsResponse(**await social_service.get_social_stats(property_id))
