"""
Pydantic schemas for property requests, filters and responses.
Field limits mirror the listing form validation.
"""

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError
from typing import Any, Dict, Optional, List, Union
from datetime import datetime
from decimal import Decimal
from uuid import UUID
import re

from app.models.property import PropertyCategory, PropertyStatus, TransactionType
from app.schemas.image import PropertyImageResponse

ZIP_CODE_PATTERN = re.compile(r"^[A-Z0-9\-\s]+$", re.IGNORECASE)
MAX_PRICE = Decimal("1000000000")
MAX_AREA = Decimal("1000000")

TEXT_FIELDS = ("title", "description", "address", "city", "state")


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _clean_zip_code(v):
    """Empty zip codes become None; anything else must match the postal pattern."""
    if v is None or v == "":
        return None
    if len(v) < 4 or not ZIP_CODE_PATTERN.match(v):
        raise ValueError("Zip code must be 4-10 letters, digits, spaces or dashes")
    return v


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(
        ...,
        min_length=5,
        max_length=100,
        description="Listing title",
        examples=["Casa moderna con jardín en Cuenca"]
    )

    description: str = Field(
        ...,
        min_length=20,
        max_length=2000,
        description="Detailed listing description"
    )

    price: Decimal = Field(
        ...,
        gt=0,
        le=MAX_PRICE,
        description="Asking price (sale) or monthly rent",
        examples=[185000]
    )

    transaction_type: TransactionType = Field(..., description="SALE or RENT")

    category: PropertyCategory = Field(..., description="Property category")

    status: PropertyStatus = Field(PropertyStatus.AVAILABLE, description="Availability status")

    bedrooms: int = Field(0, ge=0, le=50, description="Number of bedrooms")

    bathrooms: Decimal = Field(Decimal("0"), ge=0, le=50, description="Number of bathrooms")

    area: Optional[Decimal] = Field(None, gt=0, le=MAX_AREA, description="Area in square meters")

    address: Optional[str] = Field(None, min_length=5, max_length=200, description="Street address")

    # Declared before city so the city validator can read it
    state: Optional[str] = Field(None, min_length=2, max_length=100, description="State or province")

    city: Optional[str] = Field(
        None,
        min_length=2,
        max_length=100,
        validate_default=True,
        description="City"
    )

    zip_code: Optional[str] = Field(None, max_length=10, description="Postal code")

    latitude: Optional[Decimal] = Field(None, ge=-90, le=90, description="Latitude coordinate")

    longitude: Optional[Decimal] = Field(None, ge=-180, le=180, description="Longitude coordinate")

    is_featured: bool = Field(False, description="Highlight the listing (tier limited)")

    @field_validator(*TEXT_FIELDS, "zip_code", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Trim text before the length limits apply."""
        return _strip(v)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v):
        return _clean_zip_code(v)


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""

    @field_validator("city")
    @classmethod
    def validate_location_completeness(cls, v, info: ValidationInfo):
        """An address, city or state needs both a city and a state."""
        address = info.data.get("address")
        state = info.data.get("state")
        if (address or v or state) and not (v and state):
            raise PydanticCustomError(
                "location_incomplete",
                "City and state are required when address is provided"
            )
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Casa moderna con jardín en Cuenca",
                "description": "Amplia casa de tres dormitorios con jardín privado, cerca del centro histórico.",
                "price": 185000,
                "transaction_type": "SALE",
                "category": "HOUSE",
                "bedrooms": 3,
                "bathrooms": 2.5,
                "area": 210,
                "address": "Calle Larga 7-45",
                "city": "Cuenca",
                "state": "Azuay",
                "latitude": -2.8974,
                "longitude": -79.0045
            }
        }


class PropertyUpdate(BaseModel):
    """
    Schema for updating an existing property.

    Every field may be omitted, but a field that is sent must carry a value:
    explicit nulls are rejected. An empty zip code clears the stored one.
    """

    id: Optional[UUID] = Field(None, description="Property ID (taken from the path)")
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    price: Optional[Decimal] = Field(None, gt=0, le=MAX_PRICE)
    transaction_type: Optional[TransactionType] = None
    category: Optional[PropertyCategory] = None
    status: Optional[PropertyStatus] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=50)
    area: Optional[Decimal] = Field(None, gt=0, le=MAX_AREA)
    address: Optional[str] = Field(None, min_length=5, max_length=200)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=10)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    is_featured: Optional[bool] = None

    @field_validator(
        *TEXT_FIELDS, "zip_code", "price", "transaction_type", "category", "status",
        "bedrooms", "bathrooms", "area", "latitude", "longitude", "is_featured",
        mode="before"
    )
    @classmethod
    def reject_null(cls, v, info: ValidationInfo):
        if v is None:
            raise PydanticCustomError("null_value", "{field} cannot be null", {"field": info.field_name})
        return _strip(v)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v):
        return _clean_zip_code(v)

    class Config:
        json_schema_extra = {
            "example": {
                "price": 179000,
                "status": "PENDING"
            }
        }


class PropertyFilters(BaseModel):
    """
    Decoded listing filters.
    `transaction_type` and `category` hold one value or a list of values.
    """

    transaction_type: Optional[Union[TransactionType, List[TransactionType]]] = None
    category: Optional[Union[PropertyCategory, List[PropertyCategory]]] = None
    status: Optional[PropertyStatus] = None
    agent_id: Optional[UUID] = None
    city: Optional[str] = None
    state: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_area: Optional[float] = Field(None, ge=0)
    max_area: Optional[float] = Field(None, ge=0)
    search: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class AgentSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None


class PropertyResponse(BaseModel):
    """Listing as returned by the API (numbers instead of decimals)."""

    id: str
    slug: str
    title: str
    description: str
    price: float
    transaction_type: TransactionType
    category: PropertyCategory
    status: PropertyStatus
    bedrooms: int
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_featured: bool
    agent_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    images: List[PropertyImageResponse] = Field(default_factory=list)
    agent: Optional[AgentSummary] = None


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse]
    total: int = Field(..., description="Total number of properties matching the criteria")
    skip: int
    take: int
    has_next: bool


class PriceRangeResponse(BaseModel):
    min_price: float
    max_price: float


class PriceBucket(BaseModel):
    bucket: float
    count: int


class CitySuggestion(BaseModel):
    id: str
    name: str
    state: Optional[str] = None
    property_count: int


class PropertyPreview(BaseModel):
    """Compact listing card used by map popups and share links."""

    id: str
    title: str
    price: float
    transaction_type: TransactionType
    category: PropertyCategory
    bedrooms: int
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    image_url: Optional[str] = None
    agent: Optional[AgentSummary] = None


class MapBounds(BaseModel):
    ne_lat: float
    ne_lng: float
    sw_lat: float
    sw_lng: float


class MapPropertiesResponse(BaseModel):
    """Listings inside the visible map area."""

    properties: List[PropertyResponse]
    total: int
    bounds: MapBounds = Field(..., description="Bounds that were queried")
    viewport: Dict[str, Any] = Field(..., description="Initial camera: a center and zoom, or bounds to fit")
    mapbox_bounds: Optional[List[List[float]]] = Field(None, description="[[sw_lng, sw_lat], [ne_lng, ne_lat]] of the results")
