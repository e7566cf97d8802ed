# src/tickety/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admins import router as admins_router
from .auth import router as auth_router
from .system import router as system_router

__all__ = [
    "auth_router",
    "admins_router",
    "system_router",
]
