"""
Shared helpers: JWT and password hashing, the exception hierarchy, tier rules,
query/slug/map parsing, scheduling rules, caching and rate limiting.

Dependencies are imported from `app.utils.dependencies` directly to avoid
circular imports with the services.
"""

from .auth import create_access_token, create_refresh_token, verify_token, hash_password, verify_password
from .exceptions import APIException, TierLimitExceededError, RateLimitExceededError

__all__ = [
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "hash_password",
    "verify_password",
    "APIException",
    "TierLimitExceededError",
    "RateLimitExceededError",
]
