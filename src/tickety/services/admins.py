"""Administrator allow-list backed by settings and the admin_wallet table."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from threading import Lock

from sqlalchemy import select
from sqlalchemy.orm import Session

from tickety.core.security import normalize_address
from tickety.core.settings import settings
from tickety.models import AdminWallet

logger = logging.getLogger(__name__)

SOURCE_CONFIG = "config"
SOURCE_DATABASE = "database"


@dataclass(frozen=True)
class AdminEntry:
    """One allow-list member and where it was configured."""

    address: str
    note: str | None
    source: str


class AdminRegistry:
    """Answer "is this address an admin" with a short-lived membership cache.

    Static addresses from configuration always count as admins and cannot be
    removed at runtime. Persisted entries are cached per address for
    `ttl_seconds`; `add` and `remove` invalidate the affected entry and
    `invalidate()` clears everything.
    """

    def __init__(
        self,
        static_addresses: Iterable[str] = (),
        *,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.static_addresses = frozenset(
            normalize_address(address) for address in static_addresses if address
        )
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: dict[str, tuple[bool, float]] = {}
        self._lock = Lock()

    def invalidate(self, address: str | None = None) -> None:
        """Forget cached membership for one address, or for all of them."""
        with self._lock:
            if address is None:
                self._cache.clear()
            else:
                self._cache.pop(normalize_address(address), None)

    def is_admin(self, db: Session, address: str | None) -> bool:
        key = normalize_address(address)
        if not key:
            return False
        if key in self.static_addresses:
            return True

        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None and cached[1] > now:
                return cached[0]

        member = db.get(AdminWallet, key) is not None
        with self._lock:
            self._cache[key] = (member, now + self.ttl_seconds)
        return member

    def list_admins(self, db: Session) -> list[AdminEntry]:
        entries = {
            address: AdminEntry(address=address, note=None, source=SOURCE_CONFIG)
            for address in self.static_addresses
        }
        rows = db.execute(select(AdminWallet).order_by(AdminWallet.address)).scalars()
        for row in rows:
            entries.setdefault(
                row.address,
                AdminEntry(address=row.address, note=row.note, source=SOURCE_DATABASE),
            )
        return sorted(entries.values(), key=lambda entry: entry.address)

    def add(self, db: Session, address: str, note: str | None = None) -> AdminWallet:
        """Insert or update a persisted admin entry."""
        key = normalize_address(address)
        row = db.get(AdminWallet, key)
        if row is None:
            row = AdminWallet(address=key, note=note)
            db.add(row)
        else:
            row.note = note
        db.commit()
        self.invalidate(key)
        logger.info("Granted admin role to %s", key)
        return row

    def remove(self, db: Session, address: str) -> bool:
        """Delete a persisted admin entry; return False if none existed."""
        key = normalize_address(address)
        row = db.get(AdminWallet, key)
        if row is None:
            return False
        db.delete(row)
        db.commit()
        self.invalidate(key)
        logger.info("Revoked admin role from %s", key)
        return True


_REGISTRY = AdminRegistry(
    settings.admin_addresses,
    ttl_seconds=settings.admin_cache_ttl_seconds,
)


def get_admin_registry() -> AdminRegistry:
    """Return the process-wide admin registry."""
    return _REGISTRY
