# src/tickety/models/__init__.py
"""SQLAlchemy models for the Tickety application."""

from .admin import AdminWallet

__all__ = ["AdminWallet"]
