"""
Pydantic schemas for subscription plans and usage.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from app.models.user import SubscriptionTier


class UpgradeSubscriptionRequest(BaseModel):
    """Plan purchase (payment is out of band)."""

    plan: SubscriptionTier = Field(..., description="PLUS, BUSINESS or PRO")

    @field_validator("plan")
    @classmethod
    def validate_plan(cls, v):
        if v == SubscriptionTier.FREE:
            raise ValueError("Plan inválido")
        return v


class TierFeatures(BaseModel):
    tier: SubscriptionTier
    display_name: str
    property_limit: int
    image_limit: int = Field(..., description="Images per property")
    video_limit: int = Field(..., description="Videos per property")
    featured_limit: Optional[int] = Field(None, description="None means unlimited")
    has_featured: bool
    has_unlimited_featured: bool
    has_analytics: bool
    has_ai_description: bool
    support: str


class UsageItem(BaseModel):
    current: int
    limit: Optional[int] = Field(None, description="None means unlimited")
    percentage: float
    warning_level: str


class UsageOverview(BaseModel):
    tier: SubscriptionTier
    features: TierFeatures
    properties: UsageItem
    images: UsageItem
    videos: UsageItem
    featured: UsageItem
    next_tier: Optional[SubscriptionTier] = None


class TierListResponse(BaseModel):
    tiers: List[TierFeatures]
