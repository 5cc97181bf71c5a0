"""
Pydantic schemas for authentication requests and responses.
Handles signup, login, token refresh, and the current-user payload.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from app.models.user import UserRole
from app.schemas.user import UserResponse, validate_password_strength, clean_name


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agente@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password",
        examples=["securepassword123"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class SignupRequest(BaseModel):
    """Account registration schema."""

    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Display name",
        examples=["María Torres"]
    )
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password with at least one letter and one number"
    )
    role: UserRole = Field(UserRole.CLIENT, description="CLIENT or AGENT")
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "María Torres",
                "email": "maria@example.com",
                "password": "securepassword123",
                "role": "CLIENT"
            }
        }


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class CurrentUserResponse(UserResponse):
    """Current user with role permissions."""

    permissions: List[str] = Field(default_factory=list, description="Permissions granted by the role")


class LoginResponse(BaseModel):
    """Complete login response schema."""

    user: CurrentUserResponse = Field(..., description="Authenticated user information")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])
