"""Shared concurrency primitives for the ingestion pipeline.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with each awaitable wrapped in
   a semaphore acquire/release.  Results come back in input order and
   exceptions are returned in place, so one failing listing page never
   cancels its siblings.

2. **fan_in_pool** -- the concurrent-fetch-then-serial-fold pattern: a
   fixed number of worker tasks pull jobs from one queue, run the async
   ``produce`` step and push outcomes onto a second queue that a single
   consumer drains.  ``consume`` is synchronous and is the only code that
   sees outcomes, so whatever it mutates needs no locking.

No semaphore lives at module level: callers pass the limiter they own.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog

from verborum.utils.logging import get_logger

_T = TypeVar("_T")
_R = TypeVar("_R")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: Sequence[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` of them at once.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional limiter.  Without one every awaitable starts immediately.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        if semaphore is None:
            return await coro
        async with semaphore:
            return await coro

    return await asyncio.gather(*(_wrapped(c) for c in coros), return_exceptions=return_exceptions)


async def fan_in_pool(
    items: Sequence[_T],
    produce: Callable[[_T], Awaitable[_R]],
    consume: Callable[[int, _T, _R | Exception], None],
    workers: int,
    ordered: bool = False,
) -> None:
    """Run ``produce`` over *items* with *workers* tasks, folding serially.

    Parameters
    ----------
    items:
        Jobs, identified downstream by their index in this sequence.
    produce:
        Async step run concurrently (a fetch).  An ``Exception`` it raises
        is handed to ``consume`` in place of a result.
    consume:
        Synchronous fold step, called once per item from a single task.
    workers:
        Number of concurrent worker tasks (at least 1).
    ordered:
        When ``True`` outcomes are buffered and consumed in *items* order
        instead of completion order.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if not items:
        return

    jobs: asyncio.Queue[tuple[int, _T]] = asyncio.Queue()
    for idx, item in enumerate(items):
        jobs.put_nowait((idx, item))

    # Bounded so that a slow consumer applies back-pressure on the workers.
    outcomes: asyncio.Queue[tuple[int, _T, _R | Exception]] = asyncio.Queue(maxsize=workers * 2)

    async def _worker() -> None:
        while True:
            try:
                idx, item = jobs.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                outcome: _R | Exception = await produce(item)
            except Exception as exc:
                outcome = exc
            await outcomes.put((idx, item, outcome))

    async def _consumer() -> None:
        pending: dict[int, tuple[_T, _R | Exception]] = {}
        next_idx = 0
        for _ in range(len(items)):
            idx, item, outcome = await outcomes.get()
            if not ordered:
                consume(idx, item, outcome)
                continue
            pending[idx] = (item, outcome)
            while next_idx in pending:
                ready_item, ready_outcome = pending.pop(next_idx)
                consume(next_idx, ready_item, ready_outcome)
                next_idx += 1

    worker_tasks = [asyncio.create_task(_worker()) for _ in range(min(workers, len(items)))]
    try:
        await _consumer()
    finally:
        for task in worker_tasks:
            task.cancel()
        await asyncio.gather(*worker_tasks, return_exceptions=True)

    _logger.debug("fan_in_pool_drained", items=len(items), workers=len(worker_tasks))
