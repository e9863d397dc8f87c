"""
API Middleware Package
======================
Middleware components for FastAPI application.
"""

from .bearer_auth import BearerTokenMiddleware

__all__ = ["BearerTokenMiddleware"]
