"""Tests for the sequential batch combinator."""

from __future__ import annotations

import pytest

from copy_forge.utils.batch import process_sequentially


@pytest.mark.asyncio
async def test_runs_in_order_one_at_a_time():
    seen = []
    running = {"n": 0}

    async def worker(item):
        running["n"] += 1
        assert running["n"] == 1
        seen.append(item)
        running["n"] -= 1
        return item * 10

    results = await process_sequentially([1, 2, 3], worker, lambda i, e: None)
    assert results == [10, 20, 30]
    assert seen == [1, 2, 3]


@pytest.mark.asyncio
async def test_failure_becomes_a_result():
    async def worker(item):
        if item == 2:
            raise RuntimeError("nope")
        return f"ok-{item}"

    results = await process_sequentially(
        [1, 2, 3], worker, lambda item, e: f"failed-{item}: {e}"
    )
    assert results == ["ok-1", "failed-2: nope", "ok-3"]


@pytest.mark.asyncio
async def test_delay_only_between_items(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("copy_forge.utils.batch.asyncio.sleep", fake_sleep)

    async def worker(item):
        return item

    await process_sequentially([1, 2, 3], worker, lambda i, e: None, delay_seconds=0.5)
    assert sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_empty_input():
    async def worker(item):
        raise AssertionError("not called")

    assert await process_sequentially([], worker, lambda i, e: None, delay_seconds=1) == []
