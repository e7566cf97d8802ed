"""Shared API dependencies for authentication and common functionality.

Three trust levels are available to endpoints:

- `CurrentSessionDep`: a verified session token (bearer header or cookie).
- `AdminSessionDep`: a verified session whose address is on the admin
  allow-list at request time.
- `AssertedAddressDep`: an address the client simply claims through the
  `x-wallet-address` header. It carries no cryptographic proof and is only
  meant for low-stakes reads; never use it to gate admin operations.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tickety.core.security import is_eth_address, normalize_address
from tickety.core.settings import settings
from tickety.db.session import get_db
from tickety.services.admins import AdminRegistry, get_admin_registry
from tickety.services.nonce_store import NonceStore, get_nonce_store
from tickety.services.sessions import (
    InvalidToken,
    SessionClaims,
    SessionIssuer,
    get_session_issuer,
)
from tickety.services.siwe import SignatureVerifier

ASSERTED_ADDRESS_HEADER = "x-wallet-address"

# HTTP Bearer scheme; missing headers fall through to the session cookie.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_nonce_store_dep() -> NonceStore:
    return get_nonce_store()


def get_session_issuer_dep() -> SessionIssuer:
    return get_session_issuer()


def get_admin_registry_dep() -> AdminRegistry:
    return get_admin_registry()


NonceStoreDep = Annotated[NonceStore, Depends(get_nonce_store_dep)]
SessionIssuerDep = Annotated[SessionIssuer, Depends(get_session_issuer_dep)]
AdminRegistryDep = Annotated[AdminRegistry, Depends(get_admin_registry_dep)]


def get_signature_verifier(store: NonceStoreDep) -> SignatureVerifier:
    """Build a verifier bound to the configured domain and chain ids."""
    return SignatureVerifier(
        store,
        domain=settings.siwe_domain,
        chain_ids=settings.siwe_chain_ids,
    )


SignatureVerifierDep = Annotated[SignatureVerifier, Depends(get_signature_verifier)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_session(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    issuer: SessionIssuerDep,
) -> SessionClaims:
    """Return the claims of the caller's session token.

    Args:
        request: Incoming request, used for the session cookie fallback
        credentials: HTTP Bearer token credentials, if supplied
        issuer: Session issuer used to verify the token

    Returns:
        Verified session claims

    Raises:
        HTTPException: 401 if no token is present or it fails verification
    """
    token = credentials.credentials if credentials else request.cookies.get(
        settings.session_cookie_name
    )
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        return issuer.verify(token)
    except InvalidToken as err:
        raise _unauthorized("Could not validate credentials") from err


CurrentSessionDep = Annotated[SessionClaims, Depends(get_current_session)]


def require_admin(
    claims: CurrentSessionDep,
    db: SessionDep,
    registry: AdminRegistryDep,
) -> SessionClaims:
    """Require a verified session for an address on the admin allow-list.

    Membership is checked against the live allow-list rather than the roles
    stored in the token, so revoking an admin takes effect immediately.
    """
    if not registry.is_admin(db, claims.address):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin only",
        )
    return claims


AdminSessionDep = Annotated[SessionClaims, Depends(require_admin)]


def get_asserted_address(request: Request) -> str:
    """Return the address the client claims via header or `wallet` query param."""
    raw = request.headers.get(ASSERTED_ADDRESS_HEADER) or request.query_params.get("wallet")
    if not is_eth_address(raw):
        raise _unauthorized(f"Missing or invalid {ASSERTED_ADDRESS_HEADER}")
    return normalize_address(raw)


AssertedAddressDep = Annotated[str, Depends(get_asserted_address)]
