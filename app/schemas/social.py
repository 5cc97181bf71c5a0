"""
Pydantic schemas for listing engagement.
"""

from pydantic import BaseModel, Field
from typing import Dict

from app.models.social import SharePlatform
from app.schemas.property import PropertyResponse


class ShareRequest(BaseModel):
    platform: SharePlatform = Field(..., description="Where the listing was shared")


class SocialStatsResponse(BaseModel):
    total_shares: int
    total_views: int
    shares_by_platform: Dict[str, int] = Field(
        default_factory=dict,
        description="Share count per platform; platforms without shares are omitted"
    )


class TrendingProperty(PropertyResponse):
    share_count: int
    view_count: int
    engagement_score: int = Field(..., description="Shares weighted x3 plus views")
