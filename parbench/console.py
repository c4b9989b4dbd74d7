from __future__ import annotations

import abc
import logging
import sys
import threading
import time
from typing import TextIO

from .grid import RequestGrid
from .stats import RunStatistics, summarize

LOGGER = logging.getLogger("parbench.console")

REPORT_INTERVAL_S = 1.0
END_WAIT_POLL_S = 0.01


def format_duration(seconds: float) -> str:
    """Format a duration as ``HH:MM:SS.mmmm`` (milliseconds padded to four digits)."""
    total_ms = int(round(seconds * 1000))
    total_s, millis = divmod(total_ms, 1000)
    hours, remainder = divmod(total_s, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:04d}"


def format_live_stats(stats: RunStatistics) -> str:
    counts = ", ".join(f"{state}={count}" for state, count in stats.by_state.items())
    return f"{{{counts}}}"


def format_final_stats(stats: RunStatistics) -> list[str]:
    if stats.elapsed_s is None:
        runtime = "n/a"
    else:
        runtime = format_duration(stats.elapsed_s)
    if stats.throughput_per_s is None:
        rate = "n/a"
    else:
        rate = f"{stats.throughput_per_s:f}/sec"
    return [f"Total Runtime:  {runtime}", f"Reqs/sec: {rate}"]


class _PollingReporter(abc.ABC):
    _thread_name = "parbench-reporter"

    def __init__(
        self,
        grid: RequestGrid,
        interval: float = REPORT_INTERVAL_S,
        stream: TextIO | None = None,
    ) -> None:
        self._grid = grid
        self._interval = interval
        self._stream = stream
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        thread = threading.Thread(target=self._loop, name=self._thread_name, daemon=True)
        thread.start()
        self._thread = thread

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread:
            self._thread.join(timeout=timeout)

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @abc.abstractmethod
    def tick(self) -> bool:
        """Emit one report; returns True when polling should stop."""

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            if self.tick():
                self._stop_event.set()
                return
            self._stop_event.wait(self._interval)

    def _print(self, line: str) -> None:
        print(line, file=self._stream or sys.stdout, flush=True)


class ConsoleReporter(_PollingReporter):
    """Prints live state counts each interval and a final summary on completion."""

    _thread_name = "parbench-console"

    def tick(self) -> bool:
        stats = summarize(self._grid)
        self._print(format_live_stats(stats))
        if not stats.complete:
            return False
        if self._await_end():
            stats = summarize(self._grid)
        for line in format_final_stats(stats):
            self._print(line)
        LOGGER.debug("All %d requests finished, console reporter stopping", stats.total)
        return True

    def _await_end(self) -> bool:
        """Give the runner up to one interval to record the end time.

        Returns True if the end time was recorded while waiting.
        """
        if self._grid.bench_started_at is None or self._grid.bench_ended_at is not None:
            return False
        deadline = time.monotonic() + self._interval
        while self._grid.bench_ended_at is None and time.monotonic() < deadline:
            if self._stop_event.wait(END_WAIT_POLL_S):
                break
        return self._grid.bench_ended_at is not None


class ConsoleDumpReporter(_PollingReporter):
    """Prints every slot of the grid each interval. Extremely verbose."""

    _thread_name = "parbench-console-full"

    def tick(self) -> bool:
        snapshot = self._grid.snapshot()
        for row in snapshot.rows():
            cells = " ".join(
                f"{slot.state.value}:{slot.status}" if slot.status is not None else slot.state.value
                for slot in row
            )
            self._print(f"[{row[0].row:>3}] {cells}")
        return all(slot.terminal for slot in snapshot)


__all__ = [
    "REPORT_INTERVAL_S",
    "format_duration",
    "format_live_stats",
    "format_final_stats",
    "ConsoleReporter",
    "ConsoleDumpReporter",
]
