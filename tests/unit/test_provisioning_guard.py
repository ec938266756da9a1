"""Unit tests for per-actor serialisation of provisioning runs."""

from __future__ import annotations

import asyncio

import pytest

from sandbox_provisioner.provisioning import ProvisioningGuard


@pytest.mark.asyncio
async def test_same_key_runs_one_at_a_time() -> None:
    """Holders of the same key never overlap."""
    guard = ProvisioningGuard()
    active = 0
    peak = 0

    async def run() -> None:
        nonlocal active, peak
        async with guard.hold("ws-1", "user-1"):
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            active -= 1

    await asyncio.gather(*(run() for _ in range(5)))

    assert peak == 1


@pytest.mark.asyncio
async def test_different_keys_run_concurrently() -> None:
    """Distinct actors do not wait on each other."""
    guard = ProvisioningGuard()
    entered = asyncio.Event()

    async def first() -> None:
        async with guard.hold("ws-1", "user-1"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second() -> None:
        async with guard.hold("ws-1", "user-2"):
            entered.set()

    await asyncio.gather(first(), second())


@pytest.mark.asyncio
async def test_entries_are_released_after_use() -> None:
    """The lock table empties once every holder exits, even on error."""
    guard = ProvisioningGuard()

    with pytest.raises(RuntimeError):
        async with guard.hold("ws-1", "user-1"):
            assert guard.active_keys == 1
            raise RuntimeError

    assert guard.active_keys == 0
