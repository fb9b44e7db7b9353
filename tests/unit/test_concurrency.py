"""Unit tests for verborum.utils.concurrency."""

from __future__ import annotations

import asyncio

import pytest

from verborum.utils.concurrency import fan_in_pool, throttled_gather


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self) -> None:
        async def _echo(value: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return value

        results = await throttled_gather([_echo(1, 0.03), _echo(2, 0.0), _echo(3, 0.01)])
        assert results == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_exceptions_returned_in_place(self) -> None:
        async def _boom() -> int:
            raise RuntimeError("boom")

        async def _ok() -> int:
            return 7

        results = await throttled_gather([_ok(), _boom(), _ok()])
        assert results[0] == 7
        assert isinstance(results[1], RuntimeError)
        assert results[2] == 7

    @pytest.mark.asyncio
    async def test_semaphore_caps_concurrency(self) -> None:
        in_flight = 0
        peak = 0

        async def _work() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        await throttled_gather([_work() for _ in range(6)], semaphore=asyncio.Semaphore(2))
        assert peak == 2


class TestFanInPool:
    @pytest.mark.asyncio
    async def test_every_item_consumed_once(self) -> None:
        consumed: list[tuple[int, int, object]] = []

        async def _double(item: int) -> int:
            await asyncio.sleep(0.001 * (5 - item))
            return item * 2

        await fan_in_pool(
            [1, 2, 3, 4],
            produce=_double,
            consume=lambda idx, item, outcome: consumed.append((idx, item, outcome)),
            workers=2,
        )
        assert sorted(consumed) == [(0, 1, 2), (1, 2, 4), (2, 3, 6), (3, 4, 8)]

    @pytest.mark.asyncio
    async def test_ordered_consumes_in_item_order(self) -> None:
        order: list[int] = []

        async def _slow_first(item: int) -> int:
            await asyncio.sleep(0.03 if item == 0 else 0.0)
            return item

        await fan_in_pool(
            list(range(5)),
            produce=_slow_first,
            consume=lambda idx, item, outcome: order.append(idx),
            workers=3,
            ordered=True,
        )
        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_unordered_follows_completion(self) -> None:
        order: list[int] = []

        async def _slow_first(item: int) -> int:
            await asyncio.sleep(0.05 if item == 0 else 0.0)
            return item

        await fan_in_pool(
            [0, 1],
            produce=_slow_first,
            consume=lambda idx, item, outcome: order.append(item),
            workers=2,
        )
        assert order == [1, 0]

    @pytest.mark.asyncio
    async def test_produce_errors_become_outcomes(self) -> None:
        outcomes: dict[int, object] = {}

        async def _maybe_fail(item: int) -> int:
            if item == 2:
                raise ValueError("bad item")
            return item

        await fan_in_pool(
            [1, 2, 3],
            produce=_maybe_fail,
            consume=lambda idx, item, outcome: outcomes.__setitem__(item, outcome),
            workers=3,
        )
        assert outcomes[1] == 1
        assert isinstance(outcomes[2], ValueError)
        assert outcomes[3] == 3

    @pytest.mark.asyncio
    async def test_worker_count_bounds_concurrency(self) -> None:
        in_flight = 0
        peak = 0

        async def _work(item: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return item

        await fan_in_pool(list(range(8)), produce=_work, consume=lambda *args: None, workers=3)
        assert peak == 3

    @pytest.mark.asyncio
    async def test_consumer_error_propagates(self) -> None:
        async def _identity(item: int) -> int:
            return item

        def _explode(idx: int, item: int, outcome: object) -> None:
            raise RuntimeError("fold failed")

        with pytest.raises(RuntimeError, match="fold failed"):
            await fan_in_pool([1, 2, 3], produce=_identity, consume=_explode, workers=2)

    @pytest.mark.asyncio
    async def test_empty_items(self) -> None:
        calls: list[object] = []
        await fan_in_pool([], produce=None, consume=lambda *args: calls.append(args), workers=1)
        assert calls == []

    @pytest.mark.asyncio
    async def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValueError):
            await fan_in_pool([1], produce=None, consume=lambda *args: None, workers=0)
