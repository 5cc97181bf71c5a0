"""
Middleware package for the marketplace API.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
