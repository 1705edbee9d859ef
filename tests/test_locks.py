import asyncio

import pytest

from src.core.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    events = []

    async def worker(name: str):
        async with locks.acquire(1):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()

    async with locks.acquire(1):
        assert locks.locked(1)
        await asyncio.wait_for(_hold(locks, 2), timeout=1)

    assert not locks.locked(1)


async def _hold(locks: KeyedLock, key: int):
    async with locks.acquire(key):
        return True


@pytest.mark.asyncio
async def test_lock_is_released_on_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.acquire("k"):
            raise RuntimeError("boom")

    assert not locks.locked("k")
    assert len(locks) == 0
