"""Shared fixtures for the PBR engine tests."""
from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Tuple

import pytest

pytest.importorskip("numpy")
import numpy as np

from pbr_pipeline.modules.pbr.raster import Raster


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerBackend:
    """Deterministic stand-in for wall-clock timers; time only moves on request."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self.now + max(0.0, delay), next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def run_due(self) -> int:
        """Run every callback due at the current time, including ones they schedule."""

        ran = 0
        while self._queue and self._queue[0][0] <= self.now:
            _, _, handle, callback = heapq.heappop(self._queue)
            if not handle.cancelled:
                callback()
                ran += 1
        return ran

    def advance(self, seconds: float) -> int:
        ran = 0
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            self.now = max(self.now, self._queue[0][0])
            ran += self.run_due()
        self.now = target
        return ran + self.run_due()

    def run_until_idle(self, limit: int = 1000) -> int:
        ran = 0
        for _ in range(limit):
            live = [entry for entry in self._queue if not entry[2].cancelled]
            if not live:
                return ran
            self.now = max(self.now, min(entry[0] for entry in live))
            ran += self.run_due()
        raise RuntimeError("Timer queue did not drain")


@pytest.fixture()
def manual_timer() -> ManualTimerBackend:
    return ManualTimerBackend()


def make_gradient(width: int = 32, height: int = 32) -> Raster:
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    gray = (x[None, :] * 0.6 + y[:, None] * 0.4)
    rgb = np.dstack([gray, gray * 0.8, 255 - gray])
    return Raster.from_rgb(rgb)


def make_checkerboard(size: int = 32, cell: int = 8) -> Raster:
    yy, xx = np.mgrid[0:size, 0:size]
    gray = np.where(((yy // cell) + (xx // cell)) % 2 == 0, 230.0, 25.0)
    return Raster.from_gray(gray)


@pytest.fixture(scope="module")
def gradient_raster() -> Raster:
    return make_gradient()


@pytest.fixture(scope="module")
def checker_raster() -> Raster:
    return make_checkerboard()
