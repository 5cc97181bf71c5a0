"""
Database models for the real estate marketplace.
"""

from app.models.user import User, UserRole, SubscriptionTier
from app.models.property import Property, PropertyCategory, PropertyStatus, TransactionType
from app.models.image import PropertyImage
from app.models.favorite import Favorite
from app.models.appointment import Appointment, AppointmentStatus
from app.models.agent_client import AgentClient, LeadStatus
from app.models.social import PropertyShare, PropertyView, SharePlatform

__all__ = [
    "User",
    "UserRole",
    "SubscriptionTier",
    "Property",
    "PropertyCategory",
    "PropertyStatus",
    "TransactionType",
    "PropertyImage",
    "Favorite",
    "Appointment",
    "AppointmentStatus",
    "AgentClient",
    "LeadStatus",
    "PropertyView",
    "PropertyShare",
    "SharePlatform",
]
