"""Bounded worker pool with ordered fan-in.

Items are submitted with their original index. Each result lands in the
slot for that index, so the output order matches the input order no
matter which worker finishes first. Results are handed to ``on_result``
on the collecting thread, one at a time, which lets callers reduce
statistics without locks.

A worker exception does not stop the pool: the first one is kept in
``PoolOutcome.error`` and every other item still runs.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from uaftriage.errors import EnrichmentTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

MAX_AUTO_WORKERS = 16


@dataclass
class PoolOutcome(Generic[R]):
    """Per-index result slots plus the first error raised by any worker."""

    slots: list[R | None]
    error: BaseException | None = None

    @property
    def completed(self) -> int:
        return sum(1 for slot in self.slots if slot is not None)


def default_concurrency() -> int:
    """CPU count, capped at MAX_AUTO_WORKERS."""
    return max(1, min(os.cpu_count() or 1, MAX_AUTO_WORKERS))


def run_pool(
    items: Sequence[T],
    worker: Callable[[int, T], R],
    concurrency: int = 0,
    *,
    timeout: float | None = None,
    on_result: Callable[[int, R], None] | None = None,
) -> PoolOutcome[R]:
    """Run ``worker(index, item)`` for every item on a fixed-size pool.

    *concurrency* <= 0 selects ``default_concurrency()``. With a
    *timeout*, items not yet started are cancelled once it expires;
    items already running finish and are still collected.
    """
    workers = concurrency if concurrency > 0 else default_concurrency()
    outcome: PoolOutcome[R] = PoolOutcome(slots=[None] * len(items))
    collected: set[int] = set()

    def collect(future: Future, index: int) -> None:
        collected.add(index)
        try:
            value = future.result()
        except Exception as exc:
            logger.warning(
                "worker failed",
                extra={"item_index": index, "error": repr(exc)},
            )
            if outcome.error is None:
                outcome.error = exc
            return
        outcome.slots[index] = value
        if on_result is not None:
            on_result(index, value)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="uaftriage-worker") as executor:
        futures = {executor.submit(worker, idx, item): idx for idx, item in enumerate(items)}
        try:
            for future in as_completed(futures, timeout=timeout):
                collect(future, futures[future])
        except FuturesTimeoutError:
            cancelled = sum(1 for future in futures if future.cancel())
            logger.warning(
                "pool deadline exceeded",
                extra={"timeout": timeout, "cancelled": cancelled},
            )
            if outcome.error is None:
                outcome.error = EnrichmentTimeoutError(
                    f"deadline of {timeout}s exceeded; {cancelled} item(s) cancelled"
                )

    # Items that were already running when the deadline hit
    for future, idx in futures.items():
        if idx not in collected and future.done() and not future.cancelled():
            collect(future, idx)

    return outcome
