# src/tickety/api/v1/endpoints/admins.py
"""Administrator allow-list management."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from tickety.api.v1.dependencies import AdminRegistryDep, AdminSessionDep, SessionDep
from tickety.core.security import is_eth_address, normalize_address
from tickety.schemas.admin import (
    AdminChangeResponse,
    AdminCreateRequest,
    AdminEntryResponse,
    AdminListResponse,
)

router = APIRouter(prefix="/admins", tags=["admins"])


@router.get("", response_model=AdminListResponse)
async def list_admins(
    _: AdminSessionDep,
    db: SessionDep,
    registry: AdminRegistryDep,
) -> AdminListResponse:
    """List configured and persisted administrators."""
    entries = registry.list_admins(db)
    return AdminListResponse(
        items=[
            AdminEntryResponse(address=entry.address, note=entry.note, source=entry.source)
            for entry in entries
        ]
    )


@router.post("", response_model=AdminChangeResponse)
async def add_admin(
    payload: AdminCreateRequest,
    _: AdminSessionDep,
    db: SessionDep,
    registry: AdminRegistryDep,
) -> AdminChangeResponse:
    """Grant the admin role to a wallet (upsert)."""
    registry.add(db, payload.address, payload.note)
    return AdminChangeResponse(address=payload.address)


@router.delete("/{address}", response_model=AdminChangeResponse)
async def remove_admin(
    address: str,
    _: AdminSessionDep,
    db: SessionDep,
    registry: AdminRegistryDep,
) -> AdminChangeResponse:
    """Revoke a persisted admin. Addresses from configuration cannot be removed here."""
    if not is_eth_address(address):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid address",
        )
    key = normalize_address(address)
    if not registry.remove(db, key):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin not found",
        )
    return AdminChangeResponse(address=key)
