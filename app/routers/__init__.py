"""
API route handlers for the marketplace API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .map import router as map_router
from .images import router as images_router
from .favorites import router as favorites_router
from .appointments import router as appointments_router
from .subscriptions import router as subscriptions_router
from .crm import router as crm_router
from .admin import router as admin_router
from .ai import router as ai_router
from .social import router as social_router
from .agents import router as agents_router

__all__ = [
    "auth_router",
    "properties_router",
    "map_router",
    "images_router",
    "favorites_router",
    "appointments_router",
    "subscriptions_router",
    "crm_router",
    "admin_router",
    "ai_router",
    "social_router",
    "agents_router"
]
