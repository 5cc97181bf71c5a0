"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    SignupRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse,
    LoginResponse
)

# User schemas
from .user import (
    UserUpdate,
    UserResponse,
    UserWithCounts,
    UserListResponse
)

# Property schemas
from .property import (
    PropertyBase,
    PropertyCreate,
    PropertyUpdate,
    PropertyFilters,
    PropertyResponse,
    PropertyListResponse,
    PropertyPreview
)

# Image schemas
from .image import (
    PropertyImageResponse,
    UploadedImageIn,
    SaveImagesRequest,
    ReorderImagesRequest,
    ImageListResponse
)

from .appointment import AppointmentCreate, AppointmentStatusUpdate, AppointmentResponse
from .favorite import FavoriteIdsResponse, FavoriteStatusResponse
from .subscription import UpgradeSubscriptionRequest, UsageOverview
from .crm import ClientStatusUpdate, ClientNotesUpdate, CRMClientResponse
from .admin import UserRoleUpdate, PropertyStatusUpdate, AdminStats, AdminMetrics
from .ai import AISearchRequest, DescriptionRequest
from .social import ShareRequest, SocialStatsResponse, TrendingProperty
from .agent import AgentDirectoryResponse, AgentProfileResponse
from .common import ActionResult

__all__ = [
    # Authentication
    "LoginRequest",
    "SignupRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "CurrentUserResponse",
    "LoginResponse",

    # User
    "UserUpdate",
    "UserResponse",
    "UserWithCounts",
    "UserListResponse",

    # Property
    "PropertyBase",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyFilters",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertyPreview",

    # Image
    "PropertyImageResponse",
    "UploadedImageIn",
    "SaveImagesRequest",
    "ReorderImagesRequest",
    "ImageListResponse",

    # Actions
    "AppointmentCreate",
    "AppointmentStatusUpdate",
    "AppointmentResponse",
    "FavoriteIdsResponse",
    "FavoriteStatusResponse",
    "UpgradeSubscriptionRequest",
    "UsageOverview",
    "ClientStatusUpdate",
    "ClientNotesUpdate",
    "CRMClientResponse",
    "UserRoleUpdate",
    "PropertyStatusUpdate",
    "AdminStats",
    "AdminMetrics",
    "AISearchRequest",
    "DescriptionRequest",
    "ShareRequest",
    "SocialStatsResponse",
    "TrendingProperty",
    "AgentDirectoryResponse",
    "AgentProfileResponse",
    "ActionResult",
]
