"""Single-use sign-in nonces keyed by wallet address.

Two interchangeable backends implement the same contract:

- `MemoryNonceStore` keeps records in-process and suits single-instance
  deployments. Expired records are dropped on read and by `sweep()`.
- `RedisNonceStore` shares records between instances; expiry is delegated
  to Redis key TTLs and compare-and-delete runs as a server-side script.

The backend is chosen once at startup from `settings.nonce_backend`; callers
only see the `NonceStore` protocol.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any, Final, Protocol

import redis

from tickety.core.settings import Settings, settings

logger = logging.getLogger(__name__)

NONCE_BYTES: Final[int] = 16

# Delete the key only if it still holds the nonce being redeemed.
_TAKE_SCRIPT: Final[str] = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class NonceStoreError(RuntimeError):
    """Raised when the underlying nonce storage is unavailable."""


class NonceStore(Protocol):
    """Capability shared by all nonce backends."""

    ttl_seconds: int

    def issue(self, address: str) -> str:
        """Create and record a fresh nonce, replacing any previous one."""
        ...

    def peek(self, address: str) -> str | None:
        """Return the live nonce for `address`, or None if absent or expired."""
        ...

    def consume(self, address: str) -> None:
        """Delete the record for `address`; idempotent."""
        ...

    def take(self, address: str, nonce: str) -> bool:
        """Atomically delete the record if it still holds `nonce`."""
        ...


def generate_nonce() -> str:
    """Generate an unpredictable nonce (16 random bytes, hex encoded)."""
    return secrets.token_hex(NONCE_BYTES)


@dataclass
class _NonceEntry:
    nonce: str
    expires_at: float


class MemoryNonceStore:
    """In-process nonce store guarded by a single lock."""

    def __init__(self, ttl_seconds: int, *, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = int(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _NonceEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def issue(self, address: str) -> str:
        nonce = generate_nonce()
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[address] = _NonceEntry(nonce=nonce, expires_at=expires_at)
        return nonce

    def _live_entry(self, address: str) -> _NonceEntry | None:
        # Caller must hold the lock.
        entry = self._entries.get(address)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[address]
            return None
        return entry

    def peek(self, address: str) -> str | None:
        with self._lock:
            entry = self._live_entry(address)
            return entry.nonce if entry else None

    def consume(self, address: str) -> None:
        with self._lock:
            self._entries.pop(address, None)

    def take(self, address: str, nonce: str) -> bool:
        with self._lock:
            entry = self._live_entry(address)
            if entry is None or not secrets.compare_digest(entry.nonce, nonce):
                return False
            del self._entries[address]
            return True

    def sweep(self) -> int:
        """Drop every expired record and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [addr for addr, entry in self._entries.items() if now >= entry.expires_at]
            for addr in expired:
                del self._entries[addr]
        return len(expired)


class RedisNonceStore:
    """Nonce store shared across instances through Redis."""

    key_prefix: Final[str] = "siwe:nonce:"

    def __init__(self, client: Any, ttl_seconds: int) -> None:
        self.ttl_seconds = int(ttl_seconds)
        self._redis = client
        self._take = client.register_script(_TAKE_SCRIPT)

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> RedisNonceStore:
        """Build a store backed by a lazily connecting Redis client."""
        client = redis.from_url(url, decode_responses=True)  # type: ignore[no-untyped-call]
        return cls(client, ttl_seconds)

    def _key(self, address: str) -> str:
        return f"{self.key_prefix}{address}"

    def issue(self, address: str) -> str:
        nonce = generate_nonce()
        try:
            self._redis.set(self._key(address), nonce, ex=self.ttl_seconds)
        except redis.RedisError as err:
            raise NonceStoreError(f"Failed to store nonce: {err}") from err
        return nonce

    def peek(self, address: str) -> str | None:
        try:
            value = self._redis.get(self._key(address))
        except redis.RedisError as err:
            raise NonceStoreError(f"Failed to read nonce: {err}") from err
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    def consume(self, address: str) -> None:
        try:
            self._redis.delete(self._key(address))
        except redis.RedisError as err:
            raise NonceStoreError(f"Failed to delete nonce: {err}") from err

    def take(self, address: str, nonce: str) -> bool:
        try:
            removed = self._take(keys=[self._key(address)], args=[nonce])
        except redis.RedisError as err:
            raise NonceStoreError(f"Failed to redeem nonce: {err}") from err
        return bool(removed)


def build_nonce_store(config: Settings) -> NonceStore:
    """Instantiate the backend named by `config.nonce_backend`."""
    if config.nonce_backend == "redis":
        logger.info("Using Redis nonce store at %s", config.redis_url)
        return RedisNonceStore.from_url(config.redis_url, config.nonce_ttl_seconds)
    logger.info("Using in-process nonce store")
    return MemoryNonceStore(config.nonce_ttl_seconds)


_STORE: NonceStore | None = None
_STORE_LOCK = Lock()


def get_nonce_store() -> NonceStore:
    """Return the process-wide nonce store, creating it on first use."""
    global _STORE
    with _STORE_LOCK:
        if _STORE is None:
            _STORE = build_nonce_store(settings)
        return _STORE
