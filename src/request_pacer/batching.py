# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Caller-side batch orchestration on top of Scheduler.execute().

Batches are a convenience for progress reporting and memory use; the
scheduler still enforces concurrency, pacing and retries for every task.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from .scheduler.scheduler import Scheduler
from .types.result import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROGRESS_EVERY = 10
"""Log progress on batch 1, 11, 21, ... and on the last batch."""


async def gather_in_batches(
    scheduler: Scheduler,
    items: Sequence[T],
    make_task: Callable[[T], Task],
    batch_size: int = 5,
    *,
    return_exceptions: bool = True,
    timeout: float | None = None,
    label: str | None = None,
) -> list[Any]:
    """
    Run one scheduled task per item, one fixed-size batch at a time.

    Each batch is submitted concurrently through ``scheduler`` and awaited in
    full before the next batch starts.

    Args:
        scheduler: Scheduler every task goes through
        items: Items to process, in order
        make_task: Builds the zero-argument task for one item
        batch_size: Items per batch
        return_exceptions: Return a failed item's exception in its place
            instead of raising the first one
        timeout: Per-call deadline passed to ``Scheduler.execute``
        label: Name used in progress logs (defaults to the scheduler name)

    Returns:
        One result (or exception) per item, in item order

    Raises:
        ValueError: If batch_size is not positive

    Example:
        >>> ratings = await gather_in_batches(
        ...     omdb, imdb_ids, lambda imdb_id: partial(fetch_omdb, imdb_id)
        ... )
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    label = label or scheduler.name
    total_batches = (len(items) + batch_size - 1) // batch_size
    results: list[Any] = []

    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        batch_num = start // batch_size + 1

        if batch_num % PROGRESS_EVERY == 1 or batch_num == total_batches:
            logger.info(f"[{label}] batch {batch_num}/{total_batches}...")

        batch_results = await asyncio.gather(
            *(scheduler.execute(make_task(item), timeout=timeout) for item in batch),
            return_exceptions=return_exceptions,
        )
        results.extend(batch_results)

    return results


__all__ = ["gather_in_batches"]
