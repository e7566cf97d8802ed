# src/tickety/services/siwe.py
"""Sign-In with Ethereum (EIP-4361) messages and signature verification."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final

from tickety.core.security import is_eth_address, normalize_address, recover_signer
from tickety.services.nonce_store import NonceStore

logger = logging.getLogger(__name__)

HEADER_SUFFIX: Final[str] = " wants you to sign in with your Ethereum account:"

_ADDRESS_RE = re.compile(r"(?<![0-9a-fA-F])0x[a-fA-F0-9]{40}(?![0-9a-fA-F])")
_HEADER_RE = re.compile(
    r"^(?:(\S+)\s+)?wants you to sign in with your Ethereum account:$", re.IGNORECASE
)
_HEADER_MARKER: Final[str] = "wants you to sign in with your ethereum account"
_FULL_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_NONCE_RE = re.compile(r"^[A-Za-z0-9]{8,}$")
_FIELD_RE = re.compile(
    r"^(URI|Version|Chain ID|Nonce|Issued At|Expiration Time|Not Before|Request ID|Resources):"
    r"[ \t]*(.*)$"
)


class SignInError(ValueError):
    """Base class for every reason a sign-in attempt is rejected."""


class MalformedMessage(SignInError):
    """Required fields could not be extracted from the message."""


class BadSignature(SignInError):
    """The signature is invalid for the submitted message."""


class AddressMismatch(BadSignature):
    """The signature recovers to an address other than the one claimed."""


class InvalidOrExpiredNonce(SignInError):
    """The nonce is unknown, replaced, consumed or past its expiry."""


class DomainMismatch(SignInError):
    """The message is bound to a domain or chain this server does not accept."""


class MessageExpired(SignInError):
    """The message validity window does not include the current time."""


def _parse_timestamp(name: str, value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as err:
        raise MalformedMessage(f"Invalid {name} timestamp") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SiweMessage:
    """Structured EIP-4361 sign-in message."""

    address: str
    nonce: str
    domain: str | None = None
    statement: str | None = None
    uri: str | None = None
    version: str = "1"
    chain_id: int | None = None
    issued_at: datetime | None = None
    expiration_time: datetime | None = None
    not_before: datetime | None = None
    request_id: str | None = None
    resources: tuple[str, ...] = field(default_factory=tuple)

    def to_message(self) -> str:
        """Render the message in the canonical EIP-4361 text layout."""
        lines = [f"{self.domain or ''}{HEADER_SUFFIX}", self.address, ""]
        if self.statement:
            lines.extend([self.statement, ""])
        if self.uri:
            lines.append(f"URI: {self.uri}")
        lines.append(f"Version: {self.version}")
        if self.chain_id is not None:
            lines.append(f"Chain ID: {self.chain_id}")
        lines.append(f"Nonce: {self.nonce}")
        if self.issued_at is not None:
            lines.append(f"Issued At: {_format_timestamp(self.issued_at)}")
        if self.expiration_time is not None:
            lines.append(f"Expiration Time: {_format_timestamp(self.expiration_time)}")
        if self.not_before is not None:
            lines.append(f"Not Before: {_format_timestamp(self.not_before)}")
        if self.request_id:
            lines.append(f"Request ID: {self.request_id}")
        if self.resources:
            lines.append("Resources:")
            lines.extend(f"- {resource}" for resource in self.resources)
        return "\n".join(lines)


def parse_siwe_message(text: str) -> SiweMessage:
    """Parse a sign-in message.

    Messages in the EIP-4361 layout are parsed field by field. Messages without
    the standard header are accepted as long as they contain an address and a
    `Nonce:` line, which is what simplified wallet prompts produce. Leading
    blank lines and trailing whitespace on the header line are ignored; a
    header found anywhere else makes the message malformed.

    Raises:
        MalformedMessage: If the address or nonce is missing, or a typed field
            cannot be parsed.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)

    domain: str | None = None
    address: str | None = None
    body_start = 0
    header = _HEADER_RE.match(lines[0].strip()) if lines else None
    if header:
        domain = header.group(1) or None
        if len(lines) < 2 or not _FULL_ADDRESS_RE.match(lines[1].strip()):
            raise MalformedMessage("Address not found in message")
        address = lines[1].strip()
        body_start = 2
    elif _HEADER_MARKER in text.lower():
        # Header present but not on the first non-blank line.
        raise MalformedMessage("Malformed message header")
    else:
        match = _ADDRESS_RE.search(text)
        if match is None:
            raise MalformedMessage("Address not found in message")
        address = match.group(0)

    fields: dict[str, str] = {}
    resources: list[str] = []
    statement_lines: list[str] = []
    first_field_seen = False
    in_resources = False
    for line in lines[body_start:]:
        field_match = _FIELD_RE.match(line.strip())
        if field_match:
            first_field_seen = True
            key, value = field_match.group(1), field_match.group(2).strip()
            in_resources = key == "Resources"
            fields.setdefault(key, value)
            continue
        if in_resources and line.startswith("- "):
            resources.append(line[2:].strip())
            continue
        if domain is not None and not first_field_seen and line.strip():
            statement_lines.append(line.strip())

    nonce = fields.get("Nonce", "")
    if not _NONCE_RE.match(nonce):
        raise MalformedMessage("Nonce not found in message")

    chain_id: int | None = None
    if "Chain ID" in fields:
        try:
            chain_id = int(fields["Chain ID"])
        except ValueError as err:
            raise MalformedMessage("Invalid Chain ID") from err

    return SiweMessage(
        address=address,
        nonce=nonce,
        domain=domain,
        statement="\n".join(statement_lines) or None,
        uri=fields.get("URI") or None,
        version=fields.get("Version") or "1",
        chain_id=chain_id,
        issued_at=_parse_timestamp("Issued At", fields["Issued At"]) if "Issued At" in fields else None,
        expiration_time=(
            _parse_timestamp("Expiration Time", fields["Expiration Time"])
            if "Expiration Time" in fields
            else None
        ),
        not_before=(
            _parse_timestamp("Not Before", fields["Not Before"]) if "Not Before" in fields else None
        ),
        request_id=fields.get("Request ID") or None,
        resources=tuple(resources),
    )


@dataclass(frozen=True)
class VerifiedSignIn:
    """Outcome of a successful verification."""

    address: str
    chain_id: int | None
    message: SiweMessage


class SignatureVerifier:
    """Validate signed sign-in messages against the nonce store.

    Checks run in a fixed order and stop at the first failure. The nonce is
    redeemed only once every check has passed, so a rejected attempt can be
    retried with the same nonce while it is still live.
    """

    def __init__(
        self,
        nonce_store: NonceStore,
        *,
        domain: str | None = None,
        chain_ids: Iterable[int] = (),
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.nonce_store = nonce_store
        self.domain = domain.strip().lower() if domain else None
        self.chain_ids = frozenset(int(chain_id) for chain_id in chain_ids)
        self._clock = clock

    def verify(self, message: str, signature: str) -> VerifiedSignIn:
        """Verify `signature` over `message` and redeem the embedded nonce.

        Raises:
            MalformedMessage: Address or nonce missing from the message.
            BadSignature: The signature cannot be recovered.
            AddressMismatch: The signer differs from the claimed address.
            InvalidOrExpiredNonce: The nonce is not the live one for the address.
            DomainMismatch: Domain or chain binding rejected.
            MessageExpired: Outside the message's validity window.
        """
        parsed = parse_siwe_message(message)

        try:
            recovered = recover_signer(message, signature)
        except ValueError as err:
            raise BadSignature("Bad signature") from err

        if not is_eth_address(recovered):
            raise BadSignature("Bad signature")

        claimed = normalize_address(parsed.address)
        if claimed != recovered:
            raise AddressMismatch("Address mismatch")

        expected = self.nonce_store.peek(claimed)
        if expected is None or expected != parsed.nonce:
            raise InvalidOrExpiredNonce("Invalid or expired nonce")

        self._check_binding(parsed)
        self._check_window(parsed)

        if not self.nonce_store.take(claimed, parsed.nonce):
            # Replaced or redeemed by a concurrent request since the peek above.
            raise InvalidOrExpiredNonce("Invalid or expired nonce")

        return VerifiedSignIn(address=claimed, chain_id=parsed.chain_id, message=parsed)

    def _check_binding(self, parsed: SiweMessage) -> None:
        if self.domain and parsed.domain and parsed.domain.lower() != self.domain:
            raise DomainMismatch("Domain mismatch")
        if self.chain_ids and parsed.chain_id is not None and parsed.chain_id not in self.chain_ids:
            raise DomainMismatch("Chain ID not accepted")

    def _check_window(self, parsed: SiweMessage) -> None:
        now = self._clock()
        if parsed.expiration_time is not None and now >= parsed.expiration_time:
            raise MessageExpired("Message has expired")
        if parsed.not_before is not None and now < parsed.not_before:
            raise MessageExpired("Message is not yet valid")
