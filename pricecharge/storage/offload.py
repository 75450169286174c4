"""Awaitable access to the blocking repository."""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .repository import Repository

logger = logging.getLogger(__name__)


class AsyncRepository:
    """Runs every Repository method on a worker thread.

    Attribute access returns a coroutine function with the same signature
    as the wrapped method, so async callers write
    `await repository.list_chargers(user_id)` and the event loop keeps
    serving charger calls and the scheduler while the database works.

    SQLite allows one writer at a time; pass a single-thread executor to
    serialize access to it.
    """

    def __init__(self, repository: Repository, executor: Optional[ThreadPoolExecutor] = None):
        self.sync = repository
        self._executor = executor

    @classmethod
    def for_url(cls, repository: Repository, url: str) -> "AsyncRepository":
        if url.startswith("sqlite"):
            return cls(repository, ThreadPoolExecutor(max_workers=1, thread_name_prefix="sqlite"))
        return cls(repository)

    def __getattr__(self, name):
        method = getattr(self.sync, name)
        if not callable(method):
            return method

        @functools.wraps(method)
        async def run(*args, **kwargs):
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, functools.partial(method, *args, **kwargs))

        return run

    def close(self):
        """Shut down the private executor, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            logger.debug("Database executor stopped")
