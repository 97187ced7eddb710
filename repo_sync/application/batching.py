"""Bounded fan-out helper: concurrent within a batch, sequential across batches."""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_in_batches(
    items: Sequence[T],
    func: Callable[[T], R],
    batch_size: int,
    label: str = "items"
) -> List[R]:
    """
    Apply func to every item, batch_size items at a time.

    All calls of a batch start together and the batch is awaited in full
    before the next one starts.

    Args:
        items: Items to process
        func: Callable run once per item on a worker thread
        batch_size: Maximum number of concurrent calls
        label: Name used in progress logs

    Returns:
        Results in the same order as items

    Raises:
        ValueError: If batch_size is less than 1
        Exception: The first error raised by func, once its batch has settled
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    results: List[R] = []
    total_batches = (len(items) + batch_size - 1) // batch_size

    for index, start in enumerate(range(0, len(items), batch_size), start=1):
        batch = items[start:start + batch_size]
        logger.debug(f"Processing {label} batch {index}/{total_batches} ({len(batch)} items)")

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [executor.submit(func, item) for item in batch]
            wait(futures)

        results.extend(future.result() for future in futures)

    return results
