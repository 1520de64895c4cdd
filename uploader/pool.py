from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Set, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def pooled_map(limit: int, items: Iterable[T], fn: Callable[[T], Awaitable[R]]) -> List[R]:
    """
    Run fn over items with at most `limit` calls in flight.

    items is consumed lazily: the next item is only pulled once a slot is
    free. Results come back in completion order. fn is expected to handle
    its own errors; an exception escaping fn is re-raised once it is
    collected.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    results: List[R] = []
    in_flight: Set["asyncio.Future[R]"] = set()

    for item in items:
        if len(in_flight) >= limit:
            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            results.extend(fut.result() for fut in done)
        in_flight.add(asyncio.ensure_future(fn(item)))

    if in_flight:
        done, _ = await asyncio.wait(in_flight)
        results.extend(fut.result() for fut in done)

    return results
