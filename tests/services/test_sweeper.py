import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from tickety.services.nonce_store import MemoryNonceStore
from tickety.services.sweeper import NonceSweeper


def test_sweep_once_returns_removed_count() -> None:
    now = [0.0]
    store = MemoryNonceStore(ttl_seconds=10, clock=lambda: now[0])
    store.issue("0x" + "11" * 20)
    store.issue("0x" + "22" * 20)
    now[0] = 11

    assert NonceSweeper(store).sweep_once() == 2
    assert len(store) == 0


def test_sweep_once_logs_failures(caplog) -> None:
    store = MagicMock()
    store.sweep.side_effect = RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger="tickety.services.sweeper"):
        assert NonceSweeper(store).sweep_once() == 0

    assert "Nonce sweep failed" in caplog.text


@pytest.mark.asyncio
async def test_background_loop_sweeps_until_stopped() -> None:
    store = MagicMock()
    store.sweep.return_value = 0
    sweeper = NonceSweeper(store, interval_seconds=0.1)

    await sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.35)
    await sweeper.stop()

    assert not sweeper.running
    assert store.sweep.call_count >= 2


@pytest.mark.asyncio
async def test_stop_does_not_wait_for_interval() -> None:
    store = MagicMock()
    sweeper = NonceSweeper(store, interval_seconds=3600)

    await sweeper.start()
    await asyncio.wait_for(sweeper.stop(), timeout=1)

    store.sweep.assert_not_called()


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_without_start() -> None:
    sweeper = NonceSweeper(MagicMock(), interval_seconds=3600)
    await sweeper.stop()

    await sweeper.start()
    first = sweeper._task
    await sweeper.start()
    assert sweeper._task is first
    await sweeper.stop()
