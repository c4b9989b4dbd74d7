"""
Shared request-state grid.

Every planned request is a slot addressed by ``(row, col)``: the row is the
worker that owns it and the column its position in that worker's sequence.
Slot values are immutable; each cell swaps in a new value under its own lock,
so writers on different slots never contend and readers can never observe a
half-updated slot.
"""

from __future__ import annotations

import dataclasses
import enum
import threading
from dataclasses import dataclass
from typing import Iterator

from .errors import AlreadyEnded, AlreadyStarted, InvalidDimensions, InvalidTransition, NotStarted


class RequestState(str, enum.Enum):
    UNTRIED = "untried"
    REQUESTED = "requested"
    RESPONDED = "responded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({RequestState.RESPONDED, RequestState.FAILED})

LEGAL_TRANSITIONS: dict[RequestState, frozenset[RequestState]] = {
    RequestState.UNTRIED: frozenset({RequestState.REQUESTED}),
    RequestState.REQUESTED: frozenset({RequestState.RESPONDED, RequestState.FAILED}),
    RequestState.RESPONDED: frozenset(),
    RequestState.FAILED: frozenset(),
}


@dataclass(frozen=True)
class RequestSlot:
    """Point-in-time value of one planned request."""

    row: int
    col: int
    state: RequestState = RequestState.UNTRIED
    status: int | None = None
    rendered: bool = False

    @property
    def terminal(self) -> bool:
        return self.state.terminal


class _SlotCell:
    __slots__ = ("lock", "value")

    def __init__(self, row: int, col: int) -> None:
        self.lock = threading.Lock()
        self.value = RequestSlot(row=row, col=col)


@dataclass(frozen=True)
class GridSnapshot:
    """Read-only view of the grid for a single aggregation or render pass."""

    concurrency: int
    requests: int
    slots: tuple[RequestSlot, ...]
    started_at: float | None = None
    ended_at: float | None = None

    def __iter__(self) -> Iterator[RequestSlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def slot(self, row: int, col: int) -> RequestSlot:
        _check_bounds(row, col, self.concurrency, self.requests)
        return self.slots[row * self.requests + col]

    def rows(self) -> Iterator[tuple[RequestSlot, ...]]:
        for row in range(self.concurrency):
            start = row * self.requests
            yield self.slots[start : start + self.requests]


class RequestGrid:
    """Fixed ``concurrency x requests`` grid of independently locked slots."""

    def __init__(self, concurrency: int, requests: int) -> None:
        for name, value in (("concurrency", concurrency), ("requests", requests)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidDimensions(f"{name} must be a positive integer, got {value!r}")

        self.concurrency = concurrency
        self.requests = requests
        self._cells: list[list[_SlotCell]] = [
            [_SlotCell(row, col) for col in range(requests)] for row in range(concurrency)
        ]
        self._timing_lock = threading.Lock()
        self._bench_started_at: float | None = None
        self._bench_ended_at: float | None = None

    def __len__(self) -> int:
        return self.concurrency * self.requests

    def __repr__(self) -> str:
        return f"RequestGrid(concurrency={self.concurrency}, requests={self.requests})"

    @property
    def bench_started_at(self) -> float | None:
        return self._bench_started_at

    @property
    def bench_ended_at(self) -> float | None:
        return self._bench_ended_at

    def slot(self, row: int, col: int) -> RequestSlot:
        return self._cell(row, col).value

    def transition(
        self,
        row: int,
        col: int,
        new_state: RequestState | str,
        status: int | None = None,
    ) -> RequestSlot:
        target = RequestState(new_state)
        cell = self._cell(row, col)
        with cell.lock:
            current = cell.value
            if target not in LEGAL_TRANSITIONS[current.state]:
                raise InvalidTransition(row, col, current.state.value, target.value)
            if target is RequestState.RESPONDED and status is None:
                raise InvalidTransition(
                    row, col, current.state.value, target.value, "responded requires a status"
                )
            if target is not RequestState.RESPONDED and status is not None:
                raise InvalidTransition(
                    row, col, current.state.value, target.value, "status is only valid when responded"
                )
            updated = dataclasses.replace(current, state=target, status=status)
            cell.value = updated
        return updated

    def mark_rendered(self, row: int, col: int) -> None:
        cell = self._cell(row, col)
        if cell.value.rendered:
            return
        with cell.lock:
            if not cell.value.rendered:
                cell.value = dataclasses.replace(cell.value, rendered=True)

    def iter_slots(self) -> Iterator[RequestSlot]:
        for row in self._cells:
            for cell in row:
                yield cell.value

    def snapshot(self) -> GridSnapshot:
        with self._timing_lock:
            started_at = self._bench_started_at
            ended_at = self._bench_ended_at
        return GridSnapshot(
            concurrency=self.concurrency,
            requests=self.requests,
            slots=tuple(self.iter_slots()),
            started_at=started_at,
            ended_at=ended_at,
        )

    def all_rendered(self) -> bool:
        return all(slot.rendered for slot in self.iter_slots())

    def record_start(self, timestamp: float) -> None:
        with self._timing_lock:
            if self._bench_started_at is not None:
                raise AlreadyStarted(f"benchmark already started at {self._bench_started_at}")
            self._bench_started_at = timestamp

    def record_end(self, timestamp: float) -> None:
        with self._timing_lock:
            if self._bench_started_at is None:
                raise NotStarted("benchmark cannot end before it started")
            if self._bench_ended_at is not None:
                raise AlreadyEnded(f"benchmark already ended at {self._bench_ended_at}")
            self._bench_ended_at = max(timestamp, self._bench_started_at)

    def _cell(self, row: int, col: int) -> _SlotCell:
        _check_bounds(row, col, self.concurrency, self.requests)
        return self._cells[row][col]


def _check_bounds(row: int, col: int, concurrency: int, requests: int) -> None:
    if not (0 <= row < concurrency and 0 <= col < requests):
        raise IndexError(f"slot ({row}, {col}) outside {concurrency}x{requests} grid")


__all__ = [
    "RequestState",
    "TERMINAL_STATES",
    "LEGAL_TRANSITIONS",
    "RequestSlot",
    "GridSnapshot",
    "RequestGrid",
]
