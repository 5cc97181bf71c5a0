"""
Repository layer for data access operations.
Wraps the ORM with query builders for listings, media, favorites, visits and leads.
"""

from app.repositories.base import BaseRepository
from app.repositories.property import PropertyRepository
from app.repositories.image import ImageRepository
from app.repositories.user import UserRepository
from app.repositories.favorite import FavoriteRepository
from app.repositories.appointment import AppointmentRepository
from app.repositories.agent_client import AgentClientRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "ImageRepository",
    "UserRepository",
    "FavoriteRepository",
    "AppointmentRepository",
    "AgentClientRepository",
]
