"""Session credentials issued after a successful wallet sign-in.

Sessions are stateless HS256 JWTs. Nothing is persisted server side, so a
credential stays valid until it expires; roles are fixed at issuance and a
later allow-list change does not alter tokens already handed out.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Final

from jose import JWTError, jwt

from tickety.core.security import is_eth_address, normalize_address
from tickety.core.settings import settings

ROLE_ADMIN: Final[str] = "admin"
ROLE_CUSTOMER: Final[str] = "customer"


class InvalidToken(ValueError):
    """Raised for malformed, tampered, expired or wrongly shaped tokens."""


@dataclass(frozen=True)
class SessionClaims:
    """Fixed-shape claims carried by a session token."""

    address: str
    roles: tuple[str, ...]
    issued_at: datetime
    expires_at: datetime
    chain_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles


def roles_for(is_admin: bool) -> tuple[str, ...]:
    """Derive the role set granted to a freshly verified address."""
    return (ROLE_ADMIN,) if is_admin else (ROLE_CUSTOMER,)


class SessionIssuer:
    """Mint and verify signed session tokens."""

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        expire_minutes: int = 60 * 24,
    ) -> None:
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(
        self,
        address: str,
        roles: Iterable[str],
        chain_id: int | None = None,
    ) -> str:
        """Create a token for `address` with the given roles."""
        subject = normalize_address(address)
        issued_at = datetime.now(UTC)
        expires_at = issued_at + timedelta(minutes=self.expire_minutes)
        to_encode: dict[str, object] = {
            "sub": subject,
            "address": subject,
            "roles": list(roles),
            "chainId": chain_id,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        encoded_jwt: str = jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def verify(self, token: str) -> SessionClaims:
        """Decode `token` and return its claims.

        Raises:
            InvalidToken: If the signature, expiry or claim shape is invalid.
        """
        if not token:
            raise InvalidToken("Missing token")
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as err:
            raise InvalidToken("Could not validate credentials") from err

        address = payload.get("address") or payload.get("sub")
        roles = payload.get("roles")
        chain_id = payload.get("chainId")
        iat = payload.get("iat")
        exp = payload.get("exp")
        if not isinstance(address, str) or not is_eth_address(address):
            raise InvalidToken("Token subject is not a wallet address")
        if not isinstance(roles, list) or not all(isinstance(role, str) for role in roles):
            raise InvalidToken("Token roles are malformed")
        if chain_id is not None and not isinstance(chain_id, int):
            raise InvalidToken("Token chain id is malformed")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise InvalidToken("Token timestamps are malformed")

        return SessionClaims(
            address=normalize_address(address),
            roles=tuple(roles),
            chain_id=chain_id,
            issued_at=datetime.fromtimestamp(iat, UTC),
            expires_at=datetime.fromtimestamp(exp, UTC),
        )


def get_session_issuer() -> SessionIssuer:
    """Return a session issuer configured from application settings."""
    return SessionIssuer(
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
