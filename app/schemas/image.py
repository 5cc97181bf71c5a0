"""
Pydantic schemas for property image requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID


class PropertyImageResponse(BaseModel):
    """Image as returned inside a listing."""

    id: str = Field(..., description="Image unique identifier")
    url: str = Field(..., description="Public image URL")
    alt: Optional[str] = Field(None, description="Alternative text")
    order: int = Field(..., description="Display position")
    property_id: str = Field(..., description="Owning property ID")


class UploadedImageIn(BaseModel):
    """Image already stored by the client-side uploader."""

    url: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Public URL returned by the storage backend",
        examples=["https://cdn.example.com/properties/abc/1700000000-1a2b3c4d.jpg"]
    )
    alt: Optional[str] = Field(None, max_length=255, description="Alternative text")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        """Only http(s) or site-relative URLs are accepted."""
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://") or v.startswith("/")):
            raise ValueError("Image URL must be absolute (http/https) or site-relative")
        return v


class SaveImagesRequest(BaseModel):
    """Batch of uploaded images to attach to a property."""

    images: List[UploadedImageIn] = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Images to attach, in display order"
    )


class ReorderImagesRequest(BaseModel):
    """New gallery order: position in the list becomes the image `order`."""

    image_ids: List[UUID] = Field(
        ...,
        min_length=1,
        description="Image IDs in the desired display order"
    )

    @field_validator("image_ids")
    @classmethod
    def validate_unique(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("Image IDs must not repeat")
        return v


class ImageListResponse(BaseModel):
    """Images of a property."""

    property_id: str
    images: List[PropertyImageResponse]
    total: int
