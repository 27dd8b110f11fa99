"""Processing concurrency layer.

Architecture:
    FastAPI (async) -> asyncio.Semaphore(N) -> ThreadPoolExecutor(N) -> Pillow

Pillow work is CPU-bound and blocking, so every dispatch runs on a worker
thread. Requests beyond the semaphore limit wait for a free slot; when a
``queue_timeout`` is configured they give up after it with ``TimeoutError``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from imgshift.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProcessingPool:
    """Manages the semaphore and thread pool for image processing."""

    def __init__(self, settings: Settings) -> None:
        self._max_concurrent = settings.max_concurrent
        self._timeout = settings.queue_timeout
        self._semaphore = asyncio.Semaphore(settings.max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="imgshift-worker",
        )
        self._active_count: int = 0
        self._queue_depth: int = 0
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Submit a synchronous function to the processing thread pool.

        Acquires the semaphore (with the optional timeout), runs the function in
        the executor, then releases.

        Raises:
            TimeoutError: If a queue timeout is configured and no slot frees up in time.
        """
        with self._counter_lock:
            self._queue_depth += 1
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self._timeout)
        finally:
            with self._counter_lock:
                self._queue_depth -= 1

        with self._counter_lock:
            self._active_count += 1
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)
        finally:
            self._semaphore.release()
            with self._counter_lock:
                self._active_count -= 1

    @property
    def max_concurrent(self) -> int:
        """Maximum number of tasks processed at once."""
        return self._max_concurrent

    @property
    def active_count(self) -> int:
        """Number of currently running processing tasks."""
        with self._counter_lock:
            return self._active_count

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for a processing slot."""
        with self._counter_lock:
            return self._queue_depth

    def shutdown(self) -> None:
        """Shut down the thread pool executor."""
        logger.info("Shutting down processing pool")
        self._executor.shutdown(wait=True)
