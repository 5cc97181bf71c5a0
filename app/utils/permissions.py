"""
Subscription tier limits and permission lookups.
Static tables mapping each tier to its numeric limits, plus the checks built on them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from app.models.user import SubscriptionTier
import logging

logger = logging.getLogger(__name__)

TierLike = Union[SubscriptionTier, str, None]


@dataclass(frozen=True)
class TierLimits:
    """Numeric limits of a subscription tier. `None` means unlimited."""
    properties: int
    images_per_property: int
    videos_per_property: int
    featured: Optional[int]


@dataclass(frozen=True)
class LimitCheck:
    """Outcome of a tier limit check."""
    allowed: bool
    reason: Optional[str] = None
    limit: Optional[int] = None


TIER_RANK: Dict[SubscriptionTier, int] = {
    SubscriptionTier.FREE: 0,
    SubscriptionTier.PLUS: 1,
    SubscriptionTier.BUSINESS: 2,
    SubscriptionTier.PRO: 3,
}

TIER_LIMITS: Dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(properties=1, images_per_property=6, videos_per_property=0, featured=0),
    SubscriptionTier.PLUS: TierLimits(properties=3, images_per_property=10, videos_per_property=1, featured=1),
    SubscriptionTier.BUSINESS: TierLimits(properties=10, images_per_property=15, videos_per_property=3, featured=5),
    SubscriptionTier.PRO: TierLimits(properties=50, images_per_property=20, videos_per_property=5, featured=None),
}

TIER_DISPLAY_NAMES: Dict[SubscriptionTier, str] = {
    SubscriptionTier.FREE: "Gratuito",
    SubscriptionTier.PLUS: "Plus",
    SubscriptionTier.BUSINESS: "Business",
    SubscriptionTier.PRO: "Pro",
}

TIER_SUPPORT: Dict[SubscriptionTier, str] = {
    SubscriptionTier.FREE: "Email (72h)",
    SubscriptionTier.PLUS: "Email (24h)",
    SubscriptionTier.BUSINESS: "WhatsApp (12h)",
    SubscriptionTier.PRO: "WhatsApp prioritario (4h)",
}

NEXT_TIER: Dict[SubscriptionTier, Optional[SubscriptionTier]] = {
    SubscriptionTier.FREE: SubscriptionTier.PLUS,
    SubscriptionTier.PLUS: SubscriptionTier.BUSINESS,
    SubscriptionTier.BUSINESS: SubscriptionTier.PRO,
    SubscriptionTier.PRO: None,
}

# Tiers allowed to generate listing descriptions with the completion API
AI_DESCRIPTION_TIERS = frozenset({SubscriptionTier.BUSINESS, SubscriptionTier.PRO})


def normalize_tier(tier: TierLike) -> Optional[SubscriptionTier]:
    """Coerce a tier value to the enum, returning None when unknown."""
    if isinstance(tier, SubscriptionTier):
        return tier
    if isinstance(tier, str):
        try:
            return SubscriptionTier(tier.upper())
        except ValueError:
            return None
    return None


def get_tier_limits(tier: TierLike) -> TierLimits:
    """
    Get the limits table row for a tier.

    Unknown tiers fall back to the most restrictive row (FREE).
    """
    resolved = normalize_tier(tier)
    if resolved is None:
        logger.warning(f"Unknown subscription tier {tier!r}, applying FREE limits")
        return TIER_LIMITS[SubscriptionTier.FREE]
    return TIER_LIMITS[resolved]


def get_property_limit(tier: TierLike) -> int:
    return get_tier_limits(tier).properties


def get_image_limit(tier: TierLike) -> int:
    return get_tier_limits(tier).images_per_property


def get_video_limit(tier: TierLike) -> int:
    return get_tier_limits(tier).videos_per_property


def get_featured_limit(tier: TierLike) -> Optional[int]:
    return get_tier_limits(tier).featured


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def can_upload_image(tier: TierLike, total_after_upload: int) -> LimitCheck:
    """
    Check whether a property may hold `total_after_upload` images.

    Args:
        tier: Subscription tier of the listing owner
        total_after_upload: Existing images plus the ones being added

    Returns:
        LimitCheck with the Spanish upgrade message when blocked
    """
    limit = get_image_limit(tier)
    if total_after_upload <= limit:
        return LimitCheck(allowed=True, limit=limit)

    return LimitCheck(
        allowed=False,
        reason=f"Has alcanzado el límite de {limit} imágenes. Actualiza tu plan para agregar más.",
        limit=limit,
    )


def can_add_video(tier: TierLike, total_after_upload: int) -> LimitCheck:
    """Same rule as images, applied to the per-property video limit."""
    limit = get_video_limit(tier)
    if total_after_upload <= limit:
        return LimitCheck(allowed=True, limit=limit)

    noun = _plural(limit, "video", "videos")
    return LimitCheck(
        allowed=False,
        reason=f"Has alcanzado el límite de {limit} {noun}. Actualiza tu plan para agregar más.",
        limit=limit,
    )


def check_property_limit(tier: TierLike, current_count: int) -> LimitCheck:
    """
    Check whether an agent may publish one more property.

    Args:
        tier: Subscription tier of the agent
        current_count: Properties the agent already owns

    Returns:
        LimitCheck; blocked when current_count has reached the limit
    """
    limit = get_property_limit(tier)
    if current_count < limit:
        return LimitCheck(allowed=True, limit=limit)

    noun = _plural(limit, "propiedad", "propiedades")
    return LimitCheck(
        allowed=False,
        reason=f"Has alcanzado el límite de {limit} {noun}. Actualiza tu plan para publicar más.",
        limit=limit,
    )


def check_featured_limit(tier: TierLike, current_featured: int) -> LimitCheck:
    """Check whether one more listing may be featured. A None limit never blocks."""
    limit = get_featured_limit(tier)
    if limit is None or current_featured < limit:
        return LimitCheck(allowed=True, limit=limit)

    noun = _plural(limit, "propiedad destacada", "propiedades destacadas")
    return LimitCheck(
        allowed=False,
        reason=f"Has alcanzado el límite de {limit} {noun}. Actualiza tu plan para destacar más.",
        limit=limit,
    )


def can_use_ai_description(tier: TierLike) -> bool:
    return normalize_tier(tier) in AI_DESCRIPTION_TIERS


def get_tier_display_name(tier: TierLike) -> str:
    resolved = normalize_tier(tier) or SubscriptionTier.FREE
    return TIER_DISPLAY_NAMES[resolved]


def get_next_tier_upgrade(tier: TierLike) -> Optional[SubscriptionTier]:
    resolved = normalize_tier(tier) or SubscriptionTier.FREE
    return NEXT_TIER[resolved]


def has_minimum_tier(tier: TierLike, required: TierLike) -> bool:
    """Compare tiers by rank. Unknown tiers rank as FREE."""
    current = normalize_tier(tier) or SubscriptionTier.FREE
    needed = normalize_tier(required) or SubscriptionTier.FREE
    return TIER_RANK[current] >= TIER_RANK[needed]


def get_tier_features(tier: TierLike) -> Dict[str, Any]:
    """
    Describe what a tier includes.

    Returns:
        Dictionary with display name, limits and feature flags
    """
    resolved = normalize_tier(tier) or SubscriptionTier.FREE
    limits = TIER_LIMITS[resolved]

    return {
        "tier": resolved.value,
        "display_name": get_tier_display_name(resolved),
        "property_limit": limits.properties,
        "image_limit": limits.images_per_property,
        "video_limit": limits.videos_per_property,
        "featured_limit": limits.featured,
        "has_featured": limits.featured != 0,
        "has_unlimited_featured": limits.featured is None,
        "has_analytics": resolved != SubscriptionTier.FREE,
        "has_ai_description": resolved in AI_DESCRIPTION_TIERS,
        "support": TIER_SUPPORT[resolved],
    }


def get_usage_percentage(current: int, limit: Optional[int]) -> float:
    """Usage as a percentage of the limit, capped at 100. Zero or unlimited limits report 0."""
    if not limit:
        return 0.0
    return min(current / limit * 100, 100.0)


def get_warning_level(percentage: float) -> str:
    if percentage >= 90:
        return "danger"
    if percentage >= 70:
        return "warning"
    return "safe"


def get_usage_limits(tier: TierLike) -> Dict[str, Optional[int]]:
    limits = get_tier_limits(tier)
    return {
        "properties": limits.properties,
        "images_per_property": limits.images_per_property,
        "videos_per_property": limits.videos_per_property,
        "featured": limits.featured,
    }


def combine_usage_with_limits(
    stats: Dict[str, int],
    limits: Dict[str, Optional[int]]
) -> Dict[str, Dict[str, Any]]:
    """
    Merge usage counters with tier limits into per-resource summaries.

    Media limits are per property, so the account-wide ceiling scales with
    the number of listings (at least one).

    Args:
        stats: Counters with properties, images, videos and featured keys
        limits: Output of get_usage_limits

    Returns:
        Mapping resource -> {current, limit, percentage, warning_level}
    """
    property_multiplier = max(stats.get("properties", 0), 1)
    resource_limits = {
        "properties": limits["properties"],
        "images": limits["images_per_property"] * property_multiplier,
        "videos": limits["videos_per_property"] * property_multiplier,
        "featured": limits["featured"],
    }

    summary: Dict[str, Dict[str, Any]] = {}
    for resource, limit in resource_limits.items():
        current = stats.get(resource, 0)
        percentage = get_usage_percentage(current, limit)
        summary[resource] = {
            "current": current,
            "limit": limit,
            "percentage": round(percentage, 1),
            "warning_level": get_warning_level(percentage),
        }
    return summary
