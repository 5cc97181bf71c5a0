"""
Tests for subscription tier limits and usage summaries.
"""

import pytest

from app.models.user import SubscriptionTier
from app.utils.permissions import (
    TIER_LIMITS,
    can_add_video,
    can_upload_image,
    can_use_ai_description,
    check_featured_limit,
    check_property_limit,
    combine_usage_with_limits,
    get_next_tier_upgrade,
    get_tier_display_name,
    get_tier_features,
    get_tier_limits,
    get_usage_limits,
    get_usage_percentage,
    get_warning_level,
    has_minimum_tier,
    normalize_tier,
)


class TestTierLimits:
    """Static limit table lookups."""

    @pytest.mark.parametrize("tier,properties,images,videos,featured", [
        (SubscriptionTier.FREE, 1, 6, 0, 0),
        (SubscriptionTier.PLUS, 3, 10, 1, 1),
        (SubscriptionTier.BUSINESS, 10, 15, 3, 5),
        (SubscriptionTier.PRO, 50, 20, 5, None),
    ])
    def test_limits_table(self, tier, properties, images, videos, featured):
        limits = TIER_LIMITS[tier]
        assert limits.properties == properties
        assert limits.images_per_property == images
        assert limits.videos_per_property == videos
        assert limits.featured == featured

    def test_unknown_tier_falls_back_to_free(self):
        assert get_tier_limits("GOLD") == TIER_LIMITS[SubscriptionTier.FREE]
        assert get_tier_limits(None) == TIER_LIMITS[SubscriptionTier.FREE]

    def test_normalize_tier(self):
        assert normalize_tier("plus") == SubscriptionTier.PLUS
        assert normalize_tier(SubscriptionTier.PRO) == SubscriptionTier.PRO
        assert normalize_tier("unknown") is None
        assert normalize_tier(3) is None


class TestLimitChecks:
    """Property, image, video and featured checks."""

    def test_property_limit_blocks_at_limit(self):
        assert check_property_limit(SubscriptionTier.FREE, 0).allowed is True

        blocked = check_property_limit(SubscriptionTier.FREE, 1)
        assert blocked.allowed is False
        assert blocked.limit == 1
        assert blocked.reason == "Has alcanzado el límite de 1 propiedad. Actualiza tu plan para publicar más."

    def test_property_limit_plural_message(self):
        blocked = check_property_limit(SubscriptionTier.PLUS, 3)
        assert "3 propiedades" in blocked.reason

    def test_image_limit_allows_exactly_the_limit(self):
        assert can_upload_image(SubscriptionTier.FREE, 6).allowed is True

        blocked = can_upload_image(SubscriptionTier.FREE, 7)
        assert blocked.allowed is False
        assert blocked.limit == 6
        assert blocked.reason == "Has alcanzado el límite de 6 imágenes. Actualiza tu plan para agregar más."

    def test_video_limit(self):
        assert can_add_video(SubscriptionTier.FREE, 1).allowed is False
        assert can_add_video(SubscriptionTier.PLUS, 1).allowed is True
        assert "1 video." in can_add_video(SubscriptionTier.PLUS, 2).reason

    def test_featured_limit(self):
        assert check_featured_limit(SubscriptionTier.FREE, 0).allowed is False
        assert check_featured_limit(SubscriptionTier.BUSINESS, 4).allowed is True
        assert check_featured_limit(SubscriptionTier.BUSINESS, 5).allowed is False

    def test_unlimited_featured_never_blocks(self):
        check = check_featured_limit(SubscriptionTier.PRO, 10_000)
        assert check.allowed is True
        assert check.limit is None

    def test_ai_description_tiers(self):
        assert can_use_ai_description(SubscriptionTier.FREE) is False
        assert can_use_ai_description(SubscriptionTier.PLUS) is False
        assert can_use_ai_description(SubscriptionTier.BUSINESS) is True
        assert can_use_ai_description("PRO") is True


class TestTierRanking:

    def test_has_minimum_tier(self):
        assert has_minimum_tier(SubscriptionTier.PRO, SubscriptionTier.BUSINESS) is True
        assert has_minimum_tier(SubscriptionTier.PLUS, SubscriptionTier.BUSINESS) is False
        assert has_minimum_tier("unknown", SubscriptionTier.FREE) is True

    def test_next_tier(self):
        assert get_next_tier_upgrade(SubscriptionTier.FREE) == SubscriptionTier.PLUS
        assert get_next_tier_upgrade(SubscriptionTier.PRO) is None

    @pytest.mark.parametrize("tier,name", [
        (SubscriptionTier.FREE, "Gratuito"),
        (SubscriptionTier.PLUS, "Plus"),
        ("business", "Business"),
        ("unknown", "Gratuito"),
    ])
    def test_tier_display_name(self, tier, name):
        assert get_tier_display_name(tier) == name

    def test_tier_features(self):
        features = get_tier_features(SubscriptionTier.PRO)
        assert features["tier"] == "PRO"
        assert features["display_name"] == "Pro"
        assert features["property_limit"] == 50
        assert features["has_unlimited_featured"] is True
        assert features["has_ai_description"] is True

        free = get_tier_features(SubscriptionTier.FREE)
        assert free["has_featured"] is False
        assert free["has_analytics"] is False


class TestUsageSummary:

    def test_usage_percentage(self):
        assert get_usage_percentage(1, 3) == pytest.approx(33.333, rel=1e-3)
        assert get_usage_percentage(5, 3) == 100.0
        assert get_usage_percentage(2, 0) == 0.0
        assert get_usage_percentage(2, None) == 0.0

    @pytest.mark.parametrize("percentage,level", [
        (0, "safe"),
        (69.9, "safe"),
        (70, "warning"),
        (89.9, "warning"),
        (90, "danger"),
        (100, "danger"),
    ])
    def test_warning_level(self, percentage, level):
        assert get_warning_level(percentage) == level

    def test_combine_usage_scales_media_limits_by_listing_count(self):
        stats = {"properties": 2, "images": 19, "videos": 0, "featured": 1}
        summary = combine_usage_with_limits(stats, get_usage_limits(SubscriptionTier.PLUS))

        assert summary["properties"] == {"current": 2, "limit": 3, "percentage": 66.7, "warning_level": "safe"}
        assert summary["images"]["limit"] == 20
        assert summary["images"]["warning_level"] == "danger"
        assert summary["featured"]["percentage"] == 100.0

    def test_combine_usage_without_listings(self):
        summary = combine_usage_with_limits({}, get_usage_limits(SubscriptionTier.FREE))
        assert summary["images"]["limit"] == 6
        assert summary["featured"]["limit"] == 0
        assert summary["featured"]["percentage"] == 0.0
