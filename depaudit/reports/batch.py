"""Bounded-concurrency fan-out for per-package lookups."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    concurrency: int = 8,
) -> list[tuple[T, R | BaseException]]:
    """Apply *func* to every item with at most *concurrency* calls in flight.

    Results come back in input order.  A failing item yields its exception
    instead of cancelling the others.
    """
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _one(item: T) -> R:
        async with sem:
            return await func(item)

    results = await asyncio.gather(*(_one(item) for item in items), return_exceptions=True)
    return list(zip(items, results))
