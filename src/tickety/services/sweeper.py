"""Background purge of expired in-process nonces.

Expired records are already ignored on read; the sweeper only bounds memory
for addresses that request a nonce and never come back.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    def sweep(self) -> int: ...


class NonceSweeper:
    """Periodically calls `sweep()` on a nonce store from an asyncio task."""

    def __init__(self, store: Sweepable, interval_seconds: float = 60.0) -> None:
        self.store = store
        self.interval_seconds = max(0.1, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop if it is not already running."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            if self._stopping.is_set():
                return
            self.sweep_once()

    def sweep_once(self) -> int:
        """Run a single sweep, logging instead of raising on failure."""
        try:
            removed = self.store.sweep()
        except Exception:
            logger.exception("Nonce sweep failed")
            return 0
        if removed:
            logger.debug("Swept %d expired nonces", removed)
        return removed
