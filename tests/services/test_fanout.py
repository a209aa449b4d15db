"""Tests for gather_all, dedupe_by_key and successful_values."""

from __future__ import annotations

import asyncio
import time

import pytest

from idea_validator.domain.exceptions import FanoutTimeout
from idea_validator.domain.values import Envelope
from idea_validator.services.fanout import dedupe_by_key, gather_all, successful_values


async def _value(v: object, delay: float = 0.0) -> object:
    await asyncio.sleep(delay)
    return v


async def _fail(message: str, delay: float = 0.0) -> object:
    await asyncio.sleep(delay)
    raise RuntimeError(message)


class TestGatherAll:
    @pytest.mark.asyncio
    async def test_one_envelope_per_task_in_input_order(self) -> None:
        envelopes = await gather_all(
            [_value("a", 0.03), _fail("b"), _value("c"), _fail("d", 0.01), _value("e", 0.02)]
        )
        assert len(envelopes) == 5
        assert [e.succeeded for e in envelopes] == [True, False, True, False, True]
        assert [e.value for e in envelopes if e.succeeded] == ["a", "c", "e"]
        assert [str(e.error) for e in envelopes if not e.succeeded] == ["b", "d"]

    @pytest.mark.asyncio
    async def test_timeout_is_per_task(self) -> None:
        started = time.monotonic()
        fast, slow = await gather_all([_value(1, 0.0), _value(2, 5.0)], per_task_timeout=0.05)
        assert time.monotonic() - started < 1.0
        assert fast.succeeded and fast.value == 1
        assert not slow.succeeded
        assert isinstance(slow.error, FanoutTimeout)
        assert slow.error.timeout == 0.05

    @pytest.mark.asyncio
    async def test_tasks_run_concurrently(self) -> None:
        started = time.monotonic()
        await gather_all([_value(i, 0.1) for i in range(5)])
        assert time.monotonic() - started < 0.4

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        assert await gather_all([]) == []

    @pytest.mark.asyncio
    async def test_label_count_mismatch(self) -> None:
        coro = _value(1)
        with pytest.raises(ValueError):
            await gather_all([coro], labels=["a", "b"])
        coro.close()


class TestDedupeByKey:
    def test_first_occurrence_wins_in_first_seen_order(self) -> None:
        items = [("u1", 1), ("u2", 2), ("u1", 3), ("u3", 4), ("u2", 5)]
        assert dedupe_by_key(items, lambda i: i[0]) == [("u1", 1), ("u2", 2), ("u3", 4)]

    def test_missing_keys_dropped(self) -> None:
        items = [{"url": ""}, {"url": None}, {"url": "a"}]
        assert dedupe_by_key(items, lambda i: i["url"]) == [{"url": "a"}]

    def test_union_size(self) -> None:
        first = [f"u{i}" for i in range(10)]
        second = [f"u{i}" for i in range(5, 12)]
        assert len(dedupe_by_key(first + second, lambda u: u)) == 12


def test_successful_values_concatenates_lists() -> None:
    envelopes = [Envelope.ok([1, 2]), Envelope.failed(RuntimeError()), Envelope.ok([3])]
    assert successful_values(envelopes) == [1, 2, 3]
