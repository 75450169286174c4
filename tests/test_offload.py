"""Tests for running repository calls off the event loop."""

import asyncio
import threading
import time

import pytest

from pricecharge.storage import AsyncRepository


class SlowStore:
    """Blocking store recording which threads served it."""

    label = "slow"

    def __init__(self, delay=0.05):
        self.delay = delay
        self.threads = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def lookup(self, key, suffix=""):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.threads.append(threading.current_thread().name)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        return f"{key}{suffix}"


class TestAsyncRepository:

    @pytest.mark.asyncio
    async def test_call_runs_on_worker_thread(self):
        store = SlowStore(delay=0)
        repository = AsyncRepository(store)

        assert await repository.lookup("a", suffix="!") == "a!"
        assert store.threads[0] != threading.current_thread().name

    @pytest.mark.asyncio
    async def test_blocking_call_does_not_stall_loop(self):
        repository = AsyncRepository(SlowStore(delay=0.3))
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            await repository.lookup("a")
        finally:
            task.cancel()

        assert ticks >= 5

    @pytest.mark.asyncio
    async def test_sqlite_calls_are_serialized(self):
        store = SlowStore(delay=0.02)
        repository = AsyncRepository.for_url(store, "sqlite:///charge.db")
        try:
            results = await asyncio.gather(*(repository.lookup(i) for i in range(5)))
        finally:
            repository.close()

        assert results == ["0", "1", "2", "3", "4"]
        assert store.max_active == 1
        assert len(set(store.threads)) == 1
        assert store.threads[0].startswith("sqlite")

    @pytest.mark.asyncio
    async def test_other_databases_use_default_executor(self):
        store = SlowStore(delay=0.05)
        repository = AsyncRepository.for_url(store, "postgresql://db/charge")

        await asyncio.gather(repository.lookup(1), repository.lookup(2))

        assert store.max_active == 2
        repository.close()

    def test_plain_attributes_pass_through(self):
        assert AsyncRepository(SlowStore()).label == "slow"

    @pytest.mark.asyncio
    async def test_closed_executor_rejects_calls(self):
        repository = AsyncRepository.for_url(SlowStore(delay=0), "sqlite://")
        repository.close()

        with pytest.raises(RuntimeError):
            await repository.lookup("a")

    @pytest.mark.asyncio
    async def test_wraps_real_repository(self, repository):
        user_id, _ = repository.create_user("owner@example.com")
        offloaded = AsyncRepository.for_url(repository, "sqlite://")
        try:
            await offloaded.set_price_token(user_id, "tibber-token")

            assert await offloaded.get_price_token(user_id) == "tibber-token"
            assert repository.get_price_token(user_id) == "tibber-token"
        finally:
            offloaded.close()
