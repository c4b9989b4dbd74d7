from __future__ import annotations

import threading

import requests

from parbench.grid import RequestGrid, RequestState

CONNECTION_ERROR = requests.ConnectionError("connection refused")


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


class FakeSession:
    """Stands in for requests.Session; replies from a fixed outcome or a per-call function."""

    def __init__(self, outcomes) -> None:
        self._outcomes = outcomes
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str, float | None]] = []
        self.closed = False

    def request(self, method: str, url: str, timeout: float | None = None) -> FakeResponse:
        with self._lock:
            index = len(self.calls)
            self.calls.append((method, url, timeout))
        outcome = self._outcomes(index) if callable(self._outcomes) else self._outcomes
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResponse(outcome)

    def close(self) -> None:
        self.closed = True


def respond(grid: RequestGrid, row: int, col: int, status: int) -> None:
    grid.transition(row, col, RequestState.REQUESTED)
    grid.transition(row, col, RequestState.RESPONDED, status)


def fail(grid: RequestGrid, row: int, col: int) -> None:
    grid.transition(row, col, RequestState.REQUESTED)
    grid.transition(row, col, RequestState.FAILED)
