from __future__ import annotations

import logging
import time
from typing import Callable

from .grid import RequestGrid
from .stats import is_complete

LOGGER = logging.getLogger("parbench.timing")

PREWARM_POLL_INTERVAL_S = 0.1


class TimingTracker:
    """Records benchmark start/end on the grid and answers completion polls."""

    def __init__(self, grid: RequestGrid, clock: Callable[[], float] = time.time) -> None:
        self._grid = grid
        self._clock = clock

    @property
    def grid(self) -> RequestGrid:
        return self._grid

    def mark_started(self) -> float:
        started_at = self._clock()
        self._grid.record_start(started_at)
        LOGGER.info("Benchmark started (%d slots)", len(self._grid))
        return started_at

    def mark_ended(self) -> float:
        ended_at = self._clock()
        self._grid.record_end(ended_at)
        LOGGER.info("Benchmark ended after %.3fs", ended_at - self._grid.bench_started_at)
        return ended_at

    def is_complete(self) -> bool:
        return is_complete(self._grid)

    def wait_until_rendered(
        self,
        poll_interval: float = PREWARM_POLL_INTERVAL_S,
        timeout: float | None = None,
    ) -> bool:
        return wait_until_rendered(self._grid, poll_interval=poll_interval, timeout=timeout)


def wait_until_rendered(
    grid: RequestGrid,
    poll_interval: float = PREWARM_POLL_INTERVAL_S,
    timeout: float | None = None,
) -> bool:
    """Block until every slot has been drawn once.

    Waits indefinitely unless ``timeout`` is given; returns False only when
    that timeout expires first.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    LOGGER.debug("Waiting for the first full render pass")
    while not grid.all_rendered():
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LOGGER.warning("Grid not fully rendered within %.2f seconds", timeout)
                return False
            time.sleep(min(poll_interval, remaining))
        else:
            time.sleep(poll_interval)
    return True


__all__ = ["PREWARM_POLL_INTERVAL_S", "TimingTracker", "wait_until_rendered"]
