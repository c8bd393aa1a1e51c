"""
Test suite for KeyedLock.
"""

import asyncio

import pytest

from order_management.core.locks import KeyedLock


class TestKeyedLock:
    """Test suite for per-key locking."""

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        """
        Verifies:
        - Two holders of one key never overlap
        """
        locks = KeyedLock()
        events = []

        async def worker(name: str):
            async with locks.hold("product-1"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        locks = KeyedLock()
        inside = asyncio.Event()

        async def first():
            async with locks.hold("order-1"):
                await asyncio.wait_for(inside.wait(), timeout=1)

        async def second():
            async with locks.hold("order-2"):
                inside.set()

        await asyncio.gather(first(), second())

        assert inside.is_set()

    @pytest.mark.asyncio
    async def test_lock_dropped_after_release(self):
        locks = KeyedLock()

        async with locks.hold("order-1"):
            assert locks.is_locked("order-1")
            assert len(locks) == 1

        assert not locks.is_locked("order-1")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        locks = KeyedLock()

        with pytest.raises(RuntimeError):
            async with locks.hold("order-1"):
                raise RuntimeError("boom")

        assert len(locks) == 0
