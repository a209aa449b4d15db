"""Tests for Prefetcher and PrefetchHandle."""

from __future__ import annotations

import asyncio

import pytest

from idea_validator.services.prefetch import Prefetcher


class Counter:
    def __init__(self) -> None:
        self.runs = 0

    async def work(self, value: object = "result", delay: float = 0.0) -> object:
        self.runs += 1
        await asyncio.sleep(delay)
        return value

    async def boom(self) -> object:
        self.runs += 1
        raise RuntimeError("prefetch failed")


class TestPrefetcher:
    @pytest.mark.asyncio
    async def test_join_twice_runs_once(self) -> None:
        counter = Counter()
        prefetcher = Prefetcher()
        handle = prefetcher.start("web", lambda: counter.work("data", 0.01))
        assert await handle.join() == "data"
        assert await prefetcher.join(handle) == "data"
        assert counter.runs == 1
        assert handle.joined

    @pytest.mark.asyncio
    async def test_start_is_idempotent_per_name(self) -> None:
        counter = Counter()
        prefetcher = Prefetcher()
        first = prefetcher.start("web", counter.work)
        second = prefetcher.start("web", counter.work)
        assert first is second
        assert prefetcher.get("web") is first
        assert prefetcher.get("other") is None
        await first.join()
        assert counter.runs == 1

    @pytest.mark.asyncio
    async def test_runs_in_background(self) -> None:
        counter = Counter()
        handle = Prefetcher().start("web", lambda: counter.work(delay=0.01))
        await asyncio.sleep(0.05)
        assert handle.done
        assert not handle.joined
        assert await handle.join() == "result"

    @pytest.mark.asyncio
    async def test_failure_reraised_on_every_join(self) -> None:
        counter = Counter()
        handle = Prefetcher().start("web", counter.boom)
        with pytest.raises(RuntimeError, match="prefetch failed"):
            await handle.join()
        with pytest.raises(RuntimeError, match="prefetch failed"):
            await handle.join()
        assert counter.runs == 1

    @pytest.mark.asyncio
    async def test_cancel_pending(self) -> None:
        counter = Counter()
        prefetcher = Prefetcher()
        slow = prefetcher.start("slow", lambda: counter.work(delay=10.0))
        fast = prefetcher.start("fast", counter.work)
        await fast.join()
        assert prefetcher.cancel_pending() == 1
        await asyncio.sleep(0.01)
        assert slow.done
        assert not slow.cancel()
