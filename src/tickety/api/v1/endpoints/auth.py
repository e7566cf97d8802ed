# src/tickety/api/v1/endpoints/auth.py
"""Wallet sign-in endpoints (nonce, verify, session)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError

from tickety.api.v1.dependencies import (
    AdminRegistryDep,
    AssertedAddressDep,
    CurrentSessionDep,
    NonceStoreDep,
    SessionDep,
    SessionIssuerDep,
    SignatureVerifierDep,
)
from tickety.core.security import is_eth_address, normalize_address
from tickety.core.settings import settings
from tickety.schemas.auth import (
    AssertedIdentityResponse,
    LogoutResponse,
    NonceResponse,
    SessionResponse,
    VerifyRequest,
    VerifyResponse,
)
from tickety.services.nonce_store import NonceStoreError
from tickety.services.sessions import ROLE_ADMIN, ROLE_CUSTOMER, roles_for
from tickety.services.siwe import SignInError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

INTERNAL_ERROR_DETAIL = "Internal server error"


def _internal_error(err: Exception) -> HTTPException:
    logger.exception("Sign-in backend unavailable: %s", err)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=INTERNAL_ERROR_DETAIL,
    )


def _set_session_cookie(response: Response, token: str, max_age_seconds: int) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.get(
    "/nonce",
    summary="Issue a sign-in nonce for a wallet address",
    response_model=NonceResponse,
)
async def issue_nonce(store: NonceStoreDep, address: str = "") -> NonceResponse:
    """Record a fresh nonce for `address`, replacing any earlier one."""
    if not is_eth_address(address):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid address",
        )
    try:
        nonce = store.issue(normalize_address(address))
    except NonceStoreError as err:
        raise _internal_error(err) from err
    return NonceResponse(nonce=nonce, expires_in=store.ttl_seconds)


@router.post(
    "/verify",
    summary="Verify a signed sign-in message and open a session",
    response_model=VerifyResponse,
)
async def verify_sign_in(
    payload: VerifyRequest,
    response: Response,
    db: SessionDep,
    verifier: SignatureVerifierDep,
    issuer: SessionIssuerDep,
    registry: AdminRegistryDep,
) -> VerifyResponse:
    """Exchange a signed message for a session token.

    Every verification failure is reported as 400; the nonce is only redeemed
    once the signature, address, nonce and binding checks have all passed.
    """
    try:
        result = verifier.verify(payload.message, payload.signature)
    except SignInError as err:
        logger.warning("Sign-in rejected (%s): %s", type(err).__name__, err)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except NonceStoreError as err:
        raise _internal_error(err) from err

    try:
        roles = roles_for(registry.is_admin(db, result.address))
    except SQLAlchemyError as err:
        raise _internal_error(err) from err

    token = issuer.issue(result.address, roles, result.chain_id)
    _set_session_cookie(response, token, issuer.expire_minutes * 60)
    logger.info("Wallet %s signed in with roles %s", result.address, ",".join(roles))

    return VerifyResponse(
        address=result.address,
        roles=list(roles),
        chain_id=result.chain_id,
        token=token,
    )


@router.get(
    "/me",
    summary="Return the identity of the current session",
    response_model=SessionResponse,
)
async def read_session(claims: CurrentSessionDep) -> SessionResponse:
    return SessionResponse(
        address=claims.address,
        roles=list(claims.roles),
        chain_id=claims.chain_id,
    )


@router.post(
    "/logout",
    summary="Clear the session cookie",
    response_model=LogoutResponse,
)
async def logout(response: Response) -> LogoutResponse:
    """Drop the cookie. Bearer tokens stay valid until they expire."""
    response.delete_cookie(settings.session_cookie_name)
    return LogoutResponse()


@router.get(
    "/identity",
    summary="Echo the client-asserted wallet address (low assurance)",
    response_model=AssertedIdentityResponse,
)
async def read_asserted_identity(
    address: AssertedAddressDep,
    db: SessionDep,
    registry: AdminRegistryDep,
) -> AssertedIdentityResponse:
    """Report the role the asserted address would get.

    The address is whatever the client put in `x-wallet-address`; nothing here
    proves the caller controls it.
    """
    try:
        role = ROLE_ADMIN if registry.is_admin(db, address) else ROLE_CUSTOMER
    except SQLAlchemyError as err:
        raise _internal_error(err) from err
    return AssertedIdentityResponse(address=address, role=role)
