"""Async utilities shared by the sync engine and the MCP handlers.

- ``run_sync`` bridges blocking calls (HTTP requests, file I/O) onto a
  worker thread without blocking the event loop.
- ``batch_process`` fans out many independent coroutines in paced,
  bounded-concurrency batches.
- ``retry`` re-invokes a coroutine factory with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Sequence,
    TypeVar,
)

T = TypeVar("T")
R = TypeVar("R")
logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        page = await run_sync(client.get_page, "docs/guide")
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def batch_process(
    items: Sequence[T],
    processor: Callable[[T], Awaitable[R]],
    *,
    batch_size: int = 10,
    concurrency: int = 3,
    on_progress: ProgressCallback | None = None,
    delay: float = 0.1,
) -> list[R]:
    """Process *items* in batches with a bounded number of in-flight calls.

    The input is split into batches of ``batch_size``.  Inside a batch at
    most ``concurrency`` processor calls are pending at any time.  After
    each batch ``on_progress(processed, total)`` is invoked, and a short
    ``delay`` is inserted before the next batch to pace the remote API.

    The processor is expected to handle its own errors; an exception it
    raises propagates out of ``batch_process``.  Nothing is retried here.

    Args:
        items: Items to process.
        processor: Async callable applied to each item.
        batch_size: Number of items per batch.
        concurrency: Maximum concurrent processor calls within a batch.
        on_progress: Optional progress callback.
        delay: Seconds to sleep between batches.

    Returns:
        Processor results in the same order as *items*.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    total = len(items)
    results: list[R] = []
    processed = 0
    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(item: T) -> R:
        async with semaphore:
            return await processor(item)

    for start in range(0, total, batch_size):
        batch = items[start : start + batch_size]
        batch_results = await asyncio.gather(
            *(_bounded(item) for item in batch)
        )
        results.extend(batch_results)
        processed += len(batch)

        if on_progress is not None:
            on_progress(processed, total)

        if start + batch_size < total and delay > 0:
            await asyncio.sleep(delay)

    return results


async def retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Invoke *operation* until it succeeds, at most ``max_retries + 1`` times.

    The wait between attempts starts at ``initial_delay`` seconds and is
    multiplied by ``backoff_factor`` after every failure, capped at
    ``max_delay``.  The error of the final attempt propagates unchanged.

    Args:
        operation: Zero-argument callable returning an awaitable.
        max_retries: Retries after the first attempt.
        initial_delay: First wait in seconds.
        max_delay: Upper bound for any single wait.
        backoff_factor: Multiplier applied after each failed attempt.
        retry_on: Exception types worth another attempt; anything else
            propagates immediately.

    Returns:
        The result of the first successful attempt.
    """
    delay = initial_delay
    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(
                "Attempt %d/%d failed: %s (retrying in %.2fs)",
                attempt,
                max_retries + 1,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * backoff_factor, max_delay)
