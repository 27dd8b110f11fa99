"""Tests for the processing thread pool."""

from __future__ import annotations

import asyncio
import threading

import pytest

from imgshift.config import Settings
from imgshift.imaging.pool import ProcessingPool


def _make_settings(**overrides: object) -> Settings:
    defaults: dict[str, object] = {"max_concurrent": 2, "queue_timeout": None}
    defaults.update(overrides)
    return Settings(**defaults)  # type: ignore[arg-type]


class TestProcessingPool:
    async def test_run_returns_result_from_worker_thread(self) -> None:
        pool = ProcessingPool(_make_settings())
        try:
            name = await pool.run(lambda: threading.current_thread().name)
            assert name.startswith("imgshift-worker")
        finally:
            pool.shutdown()

    async def test_run_passes_arguments(self) -> None:
        pool = ProcessingPool(_make_settings())
        try:
            assert await pool.run(pow, 2, 10) == 1024
        finally:
            pool.shutdown()

    async def test_counters_reset_after_run(self) -> None:
        pool = ProcessingPool(_make_settings())
        try:
            await pool.run(sum, [1, 2, 3])
            assert pool.active_count == 0
            assert pool.queue_depth == 0
        finally:
            pool.shutdown()

    async def test_exceptions_propagate(self) -> None:
        def _fail() -> None:
            raise RuntimeError("worker failed")

        pool = ProcessingPool(_make_settings())
        try:
            with pytest.raises(RuntimeError, match="worker failed"):
                await pool.run(_fail)
            assert pool.active_count == 0
        finally:
            pool.shutdown()

    async def test_times_out_when_saturated(self) -> None:
        pool = ProcessingPool(_make_settings(max_concurrent=1, queue_timeout=0.05))
        release = threading.Event()
        blocker = asyncio.create_task(pool.run(release.wait, 5))
        try:
            while pool.active_count == 0:
                await asyncio.sleep(0.001)
            with pytest.raises(TimeoutError):
                await pool.run(lambda: 1)
            assert pool.queue_depth == 0
        finally:
            release.set()
            await blocker
            pool.shutdown()

    async def test_waits_without_timeout(self) -> None:
        pool = ProcessingPool(_make_settings(max_concurrent=1))
        release = threading.Event()
        blocker = asyncio.create_task(pool.run(release.wait, 5))
        try:
            while pool.active_count == 0:
                await asyncio.sleep(0.001)
            waiter = asyncio.create_task(pool.run(lambda: "done"))
            await asyncio.sleep(0.05)
            assert pool.queue_depth == 1
            release.set()
            assert await waiter == "done"
        finally:
            release.set()
            await blocker
            pool.shutdown()
