"""
Service layer for business logic implementation.
Each service authorizes the caller, delegates to repositories and invalidates cached pages.
"""

from .auth import AuthService
from .property import PropertyService
from .image import ImageService
from .favorite import FavoriteService
from .appointment import AppointmentService, AppointmentNotifier, LoggingNotifier
from .subscription import SubscriptionService
from .crm import CRMService
from .admin import AdminService
from .ai import AIService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ImageService",
    "FavoriteService",
    "AppointmentService",
    "AppointmentNotifier",
    "LoggingNotifier",
    "SubscriptionService",
    "CRMService",
    "AdminService",
    "AIService",
    "ErrorHandlerService"
]
