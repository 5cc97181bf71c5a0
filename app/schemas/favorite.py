"""
Pydantic schemas for favorites.
"""

from pydantic import BaseModel
from typing import List

from app.schemas.property import PropertyResponse


class FavoriteIdsResponse(BaseModel):
    """IDs of the user's favorite properties, newest first."""

    property_ids: List[str]


class FavoriteStatusResponse(BaseModel):
    property_id: str
    is_favorite: bool


class FavoriteDetailsResponse(BaseModel):
    properties: List[PropertyResponse]
    total: int
