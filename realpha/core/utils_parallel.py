"""Parallel execution helpers for the realpha combiner."""
from __future__ import annotations

import concurrent.futures
import logging
import os
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, TypeVar


LOGGER = logging.getLogger("realpha.parallel")

T = TypeVar("T")
R = TypeVar("R")


def create_thread_pool(max_workers: Optional[int] = None) -> concurrent.futures.ThreadPoolExecutor:
    """Create a thread pool executor with sane defaults."""

    return concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="realpha")


def run_parallel(function: Callable[[T], R], items: Sequence[T], *, max_workers: Optional[int] = None) -> list[R]:
    """Run *function* for each element in *items* concurrently.

    Results are returned in the order of *items*. The first worker failure is
    logged and re-raised once every submitted task has settled.
    """

    if not items:
        return []
    with create_thread_pool(max_workers=max_workers) as executor:
        futures = [executor.submit(function, item) for item in items]
        concurrent.futures.wait(futures)
        results: list[R] = []
        for future in futures:
            try:
                results.append(future.result())
            except Exception as exc:
                LOGGER.exception("Parallel worker failure: %s", exc)
                raise
        return results


@contextmanager
def limited_threads(max_workers: Optional[int]) -> Iterator[None]:
    """Context manager that logs thread usage for diagnostics."""

    LOGGER.debug("Starting thread pool with up to %s workers", max_workers)
    try:
        yield
    finally:
        LOGGER.debug("Thread pool with %s workers completed", max_workers)


class SequentialStrategy:
    """Run every task in order on the calling thread."""

    max_workers = 1

    def map(self, function: Callable[[T], R], items: Sequence[T]) -> list[R]:
        return [function(item) for item in items]

    def __repr__(self) -> str:
        return "SequentialStrategy()"


class ThreadedStrategy:
    """Distribute tasks over a thread pool.

    NumPy releases the GIL inside its array kernels, so bands of rows handed
    to separate threads are computed concurrently.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers!r}")
        self.max_workers = max_workers or os.cpu_count() or 1

    def map(self, function: Callable[[T], R], items: Sequence[T]) -> list[R]:
        with limited_threads(self.max_workers):
            return run_parallel(function, items, max_workers=self.max_workers)

    def __repr__(self) -> str:
        return f"ThreadedStrategy(max_workers={self.max_workers})"


def resolve_strategy(threads: Optional[int]) -> SequentialStrategy | ThreadedStrategy:
    """Map a ``--threads`` value onto an execution strategy.

    ``None`` or ``0`` uses one worker per CPU, ``1`` runs sequentially.
    """

    if threads is None or threads == 0:
        return ThreadedStrategy()
    if threads < 0:
        raise ValueError(f"Thread count cannot be negative: {threads}")
    if threads == 1:
        return SequentialStrategy()
    return ThreadedStrategy(max_workers=threads)
