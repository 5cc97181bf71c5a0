"""
Subscription API endpoints: plan catalogue, usage and upgrades.
"""

from fastapi import APIRouter, Depends, status

from app.models.user import User
from app.services.auth import AuthService
from app.services.error_handler import ErrorHandlerService
from app.services.subscription import SubscriptionService
from app.schemas.subscription import TierListResponse, UpgradeSubscriptionRequest, UsageOverview
from app.schemas.error import get_action_responses, get_auth_error_responses
from app.utils.dependencies import get_current_active_user, get_subscription_service
from app.utils.exceptions import APIException

router = APIRouter(prefix="/subscription", tags=["Subscription"])


@router.get(
    "/me",
    response_model=UsageOverview,
    status_code=status.HTTP_200_OK,
    summary="Current plan and usage",
    description="Plan features, usage against the plan limits with warning levels, and the next plan.",
    responses=get_auth_error_responses()
)
async def get_my_subscription(
    current_user: User = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
) -> UsageOverview:
    return await subscription_service.get_usage_overview(current_user)


@router.get(
    "/tiers",
    response_model=TierListResponse,
    summary="Plan catalogue"
)
async def list_tiers() -> TierListResponse:
    return TierListResponse(tiers=SubscriptionService.list_tiers())


@router.post(
    "/upgrade",
    summary="Upgrade the current plan",
    description="Move to a higher paid plan. Clients become agents when they upgrade.",
    responses=get_action_responses(200, 400, 401, 404, 422)
)
async def upgrade_subscription(
    upgrade_data: UpgradeSubscriptionRequest,
    current_user: User = Depends(get_current_active_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        user = await subscription_service.upgrade_subscription(current_user, upgrade_data.plan)
        return ErrorHandlerService.action_success(user=AuthService.current_user_payload(user))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "upgrade_subscription")
