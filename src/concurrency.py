"""Bounded-concurrency helpers for fanning out GitHub requests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """
    Split items into consecutive chunks of at most `size`, preserving order.

    Args:
        items: Items to split
        size: Maximum chunk length (must be positive)

    Returns:
        ceil(len(items) / size) chunks; empty list for empty input
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


async def gather_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
) -> list[R]:
    """
    Run `worker` over every item with at most `limit` calls in flight.

    A counting semaphore with `limit` permits is acquired around each unit of
    work. Results come back in input order. Exceptions from a worker propagate,
    so callers that want per-item isolation handle errors inside the worker.

    Args:
        items: Inputs to process
        worker: Async callable applied to each item
        limit: Maximum number of concurrent worker calls

    Returns:
        Worker results in the same order as `items`
    """
    if limit <= 0:
        raise ValueError(f"concurrency limit must be positive, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def run_with_limit(item: T) -> R:
        async with semaphore:
            return await worker(item)

    return list(await asyncio.gather(*(run_with_limit(item) for item in items)))
