"""
Pydantic schemas for AI-assisted search and description generation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from decimal import Decimal

from app.models.property import PropertyCategory, TransactionType


class AISearchRequest(BaseModel):
    """Natural-language search query."""

    query: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Search in plain language",
        examples=["Casa moderna en Cuenca con 3 habitaciones bajo $200k"]
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v):
        if not v.strip():
            raise ValueError("Search query cannot be empty")
        return v.strip()


class AISearchProperty(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    price: float
    city: Optional[str] = None
    address: Optional[str] = None
    category: PropertyCategory
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AISearchResult(BaseModel):
    success: bool = True
    query: str
    properties: List[AISearchProperty]
    filter_summary: Dict[str, Any]
    total_results: int
    confidence: int


class DescriptionRequest(BaseModel):
    """Listing characteristics used to draft a description."""

    title: Optional[str] = Field(None, max_length=100)
    transaction_type: TransactionType
    category: PropertyCategory
    bedrooms: int = Field(0, ge=0, le=50)
    bathrooms: Decimal = Field(Decimal("0"), ge=0, le=50)
    area: Decimal = Field(..., gt=0)
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    amenities: List[str] = Field(default_factory=list, max_length=30)
    price: Optional[Decimal] = Field(None, gt=0)
