"""Timer and thread helpers used by the generation scheduler."""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from typing import Callable, Optional, Protocol, Sequence, TypeVar

LOGGER = logging.getLogger("pbr_pipeline.parallel")

T = TypeVar("T")
R = TypeVar("R")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerBackend(Protocol):
    """Anything able to run a callback once after *delay* seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingTimerBackend:
    """Run callbacks on daemon :class:`threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return timer


def create_thread_pool(max_workers: Optional[int] = None) -> concurrent.futures.ThreadPoolExecutor:
    """Create a thread pool executor with sane defaults."""

    return concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)


def run_parallel(function: Callable[[T], R], items: Sequence[T], *, max_workers: Optional[int] = None) -> list[R]:
    """Run *function* for each element in *items* concurrently, keeping input order."""

    if not items:
        return []
    with create_thread_pool(max_workers=max_workers) as executor:
        futures = [executor.submit(function, item) for item in items]
        results: list[R] = []
        for item, future in zip(items, futures):
            try:
                results.append(future.result())
            except Exception:
                LOGGER.exception("Parallel worker failed for %r", item)
                raise
        return results
