# src/tickety/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import admins_router, auth_router, system_router

__all__ = [
    "auth_router",
    "admins_router",
    "system_router",
]
