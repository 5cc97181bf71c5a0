"""
AI API endpoints: natural-language search and description drafts.
"""

from fastapi import APIRouter, Depends

from app.models.user import User
from app.services.ai import AIService
from app.services.error_handler import ErrorHandlerService
from app.schemas.ai import AISearchRequest, AISearchResult, DescriptionRequest
from app.schemas.error import get_action_responses
from app.utils.dependencies import get_ai_service, get_current_active_user
from app.utils.exceptions import APIException
from app.utils.rate_limit import rate_limit

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post(
    "/search",
    summary="Natural-language property search",
    description='Turns a query such as "casa en Cuenca bajo $200k con 3 habitaciones" into listing filters.',
    responses={
        **get_action_responses(200, 422, 429, 503),
        200: {"description": "Matching listings and the filters that were applied", "model": AISearchResult}
    },
    dependencies=[Depends(rate_limit("ai-search"))]
)
async def ai_search(
    search_data: AISearchRequest,
    ai_service: AIService = Depends(get_ai_service)
):
    try:
        result = await ai_service.ai_search(search_data.query)
        return ErrorHandlerService.action_success(**result)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "ai_search")


@router.post(
    "/description",
    summary="Draft a listing description",
    description="Available on the Business and Pro plans.",
    responses=get_action_responses(200, 401, 403, 422, 429, 503),
    dependencies=[Depends(rate_limit("ai-search"))]
)
async def generate_description(
    description_data: DescriptionRequest,
    current_user: User = Depends(get_current_active_user),
    ai_service: AIService = Depends(get_ai_service)
):
    try:
        description = await ai_service.generate_description(description_data, current_user)
        return ErrorHandlerService.action_success(description=description)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "generate_description")
