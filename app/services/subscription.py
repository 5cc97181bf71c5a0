"""
Subscription service: tier management and plan usage.
Payments are handled out of band; this service only records the resulting tier.
"""

from typing import List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user import User, UserRole, SubscriptionTier
from app.repositories.image import ImageRepository
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.utils.exceptions import APIException, BadRequestError, NotFoundError, ValidationError
from app.utils.permissions import (
    TIER_RANK,
    combine_usage_with_limits,
    get_next_tier_upgrade,
    get_tier_features,
    get_usage_limits,
    has_minimum_tier,
    normalize_tier,
)
import uuid
import logging

logger = logging.getLogger(__name__)

PAID_TIERS = (SubscriptionTier.PLUS, SubscriptionTier.BUSINESS, SubscriptionTier.PRO)


class SubscriptionService:
    """Tier manager for user accounts."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.image_repo = ImageRepository(db_session)

    async def _get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def set_user_tier(self, user_id: uuid.UUID, tier: Any, reason: str = "manual") -> User:
        """
        Set a user's subscription tier.

        Args:
            user_id: Target user
            tier: Tier enum member or name
            reason: Why the tier changed (logged)

        Raises:
            ValidationError: If the tier is unknown
            NotFoundError: If the user doesn't exist
        """
        resolved = normalize_tier(tier)
        if resolved is None:
            raise ValidationError(f"Invalid subscription tier: {tier}")

        await self._get_user(user_id)
        user = await self.user_repo.update(user_id, {"subscription_tier": resolved})
        logger.info(f"User {user_id} tier set to {resolved.value} (reason: {reason})")
        return user

    async def get_user_tier(self, user_id: uuid.UUID) -> SubscriptionTier:
        user = await self._get_user(user_id)
        return user.subscription_tier

    async def has_minimum_tier(self, user_id: uuid.UUID, required: Any) -> bool:
        return has_minimum_tier(await self.get_user_tier(user_id), required)

    async def promote_to_agent(self, user_id: uuid.UUID, tier: Any) -> User:
        """
        Make a user an agent on a paid tier.

        Raises:
            ValidationError: If the tier is FREE or unknown
        """
        resolved = normalize_tier(tier)
        if resolved not in PAID_TIERS:
            raise ValidationError("Plan inválido")

        await self._get_user(user_id)
        user = await self.user_repo.update(user_id, {"role": UserRole.AGENT, "subscription_tier": resolved})
        logger.info(f"User {user_id} promoted to agent on {resolved.value}")
        return user

    async def downgrade_to_free(self, user_id: uuid.UUID) -> User:
        """Back to FREE. The agent role is kept."""
        return await self.set_user_tier(user_id, SubscriptionTier.FREE, reason="downgrade")

    async def upgrade_subscription(self, current_user: User, plan: SubscriptionTier) -> User:
        """
        Upgrade the current user to a higher paid plan.

        Clients become agents on upgrade.

        Raises:
            ValidationError: If the plan is not a paid plan above the current tier
        """
        try:
            if plan not in PAID_TIERS:
                raise ValidationError("Plan inválido")

            if TIER_RANK[plan] <= TIER_RANK[current_user.subscription_tier]:
                raise ValidationError("El plan seleccionado no es superior a tu plan actual")

            if current_user.role == UserRole.CLIENT:
                user = await self.promote_to_agent(current_user.id, plan)
            else:
                user = await self.set_user_tier(current_user.id, plan, reason="upgrade")

            logger.info(f"User {current_user.email} upgraded to {plan.value}")
            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to upgrade subscription for {current_user.id}: {e}")
            raise BadRequestError(f"Failed to upgrade subscription: {str(e)}")

    async def get_usage_stats(self, user_id: uuid.UUID) -> Dict[str, int]:
        return {
            "properties": await self.property_repo.count_by_agent(user_id),
            "images": await self.image_repo.count_by_agent(user_id),
            "videos": 0,
            "featured": await self.property_repo.count_featured_by_agent(user_id),
        }

    async def get_usage_overview(self, current_user: User) -> Dict[str, Any]:
        """
        Plan features and usage against the plan limits.

        Returns:
            Dictionary with tier, features, per-resource usage and next tier
        """
        tier = current_user.subscription_tier
        stats = await self.get_usage_stats(current_user.id)
        usage = combine_usage_with_limits(stats, get_usage_limits(tier))

        return {
            "tier": tier,
            "features": get_tier_features(tier),
            **usage,
            "next_tier": get_next_tier_upgrade(tier),
        }

    @staticmethod
    def list_tiers() -> List[Dict[str, Any]]:
        return [get_tier_features(tier) for tier in SubscriptionTier]
