"""System and transparency endpoints for the Tickety API."""

from __future__ import annotations

from fastapi import APIRouter

from tickety.api.v1.dependencies import NonceStoreDep
from tickety.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config(store: NonceStoreDep) -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets, connection strings and the admin allow-list; suitable for
    the frontend to build sign-in messages that will pass server-side checks.

    Args:
        store: Active nonce store, reported by backend type only

    Returns:
        Dictionary with app metadata, sign-in binding and session lifetimes
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "sign_in": {
            "domain": settings.siwe_domain,
            "chain_ids": list(settings.siwe_chain_ids),
            "nonce_backend": settings.nonce_backend,
            "nonce_ttl_seconds": store.ttl_seconds,
        },
        "session": {
            "jwt_algorithm": settings.jwt_algorithm,
            "access_token_expire_minutes": settings.access_token_expire_minutes,
            "cookie_name": settings.session_cookie_name,
        },
    }
