"""
Pydantic schemas for user requests and responses.
Handles profile updates and the public user representation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.models.user import UserRole, SubscriptionTier


def validate_password_strength(v: Optional[str]) -> Optional[str]:
    """At least 8 characters with one letter and one number."""
    if v is None:
        return v

    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")

    has_letter = any(c.isalpha() for c in v)
    has_number = any(c.isdigit() for c in v)

    if not has_letter:
        raise ValueError("Password must contain at least one letter")

    if not has_number:
        raise ValueError("Password must contain at least one number")

    return v


def clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip()


class UserUpdate(BaseModel):
    """Profile changes made by the account owner. Roles and status change through the admin panel."""

    name: Optional[str] = Field(
        None,
        min_length=2,
        max_length=100,
        description="Display name"
    )

    phone: Optional[str] = Field(
        None,
        max_length=50,
        description="Contact phone number"
    )

    avatar: Optional[str] = Field(
        None,
        max_length=500,
        description="Avatar image URL"
    )

    password: Optional[str] = Field(
        None,
        min_length=8,
        max_length=128,
        description="New password (minimum 8 characters)"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        """Validate password strength."""
        return validate_password_strength(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "María Torres",
                "phone": "+593 99 123 4567"
            }
        }


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(
        ...,
        description="User's unique identifier",
        examples=["123e4567-e89b-12d3-a456-426614174000"]
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agente@example.com"]
    )

    name: Optional[str] = Field(None, description="Display name")
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole = Field(..., description="User's role")
    subscription_tier: SubscriptionTier = Field(..., description="Subscription plan")
    is_active: bool = Field(..., description="Whether the account is active")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserWithCounts(UserResponse):
    """User row in the admin listing."""

    property_count: int = 0
    favorite_count: int = 0
    appointment_count: int = 0


class UserListResponse(BaseModel):
    """Schema for paginated user list response."""

    users: List[UserWithCounts]
    total: int = Field(..., description="Total number of users matching the criteria")
    skip: int
    take: int
