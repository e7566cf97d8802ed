"""Pydantic schemas for the Tickety API."""

from .admin import AdminChangeResponse, AdminCreateRequest, AdminEntryResponse, AdminListResponse
from .auth import (
    AssertedIdentityResponse,
    LogoutResponse,
    NonceResponse,
    SessionResponse,
    VerifyRequest,
    VerifyResponse,
)

__all__ = [
    "AdminChangeResponse",
    "AdminCreateRequest",
    "AdminEntryResponse",
    "AdminListResponse",
    "AssertedIdentityResponse",
    "LogoutResponse",
    "NonceResponse",
    "SessionResponse",
    "VerifyRequest",
    "VerifyResponse",
]
