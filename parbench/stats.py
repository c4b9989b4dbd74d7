from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Union

from .errors import DivisionUndefined, NotStarted
from .grid import GridSnapshot, RequestGrid, RequestSlot, RequestState

STATE_ORDER: tuple[str, ...] = tuple(state.value for state in RequestState)

RESPONSE_CLASSES: tuple[str, ...] = ("2xx", "3xx", "4xx", "5xx", "other")
OUTCOME_CLASSES: tuple[str, ...] = RESPONSE_CLASSES + (
    RequestState.FAILED.value,
    RequestState.REQUESTED.value,
    RequestState.UNTRIED.value,
)

GridSource = Union[RequestGrid, GridSnapshot]


def as_snapshot(source: GridSource) -> GridSnapshot:
    if isinstance(source, GridSnapshot):
        return source
    return source.snapshot()


def status_class(status: int) -> str:
    """Bucket an HTTP status code into its coarse class."""
    if 200 <= status <= 299:
        return "2xx"
    if 300 <= status <= 399:
        return "3xx"
    if 400 <= status <= 499:
        return "4xx"
    if 500 <= status <= 599:
        return "5xx"
    return "other"


def outcome_class(slot: RequestSlot) -> str:
    if slot.state is RequestState.RESPONDED:
        return status_class(slot.status)
    return slot.state.value


def counts_by_state(source: GridSource) -> dict[str, int]:
    counts = dict.fromkeys(STATE_ORDER, 0)
    for slot in as_snapshot(source):
        counts[slot.state.value] += 1
    return counts


def counts_by_outcome_class(source: GridSource) -> dict[str, int]:
    counts = dict.fromkeys(OUTCOME_CLASSES, 0)
    for slot in as_snapshot(source):
        counts[outcome_class(slot)] += 1
    return counts


def elapsed(source: GridSource, now: float | None = None) -> float:
    """Seconds between benchmark start and end, or start and ``now`` while running."""
    snapshot = as_snapshot(source)
    if snapshot.started_at is None:
        raise NotStarted("benchmark has not started")
    if snapshot.ended_at is not None:
        return snapshot.ended_at - snapshot.started_at
    if now is None:
        now = time.time()
    return max(now - snapshot.started_at, 0.0)


def throughput(source: GridSource, now: float | None = None) -> float:
    """Responded requests per second over the elapsed benchmark time."""
    snapshot = as_snapshot(source)
    duration = elapsed(snapshot, now)
    if duration <= 0:
        raise DivisionUndefined("elapsed time is zero")
    return counts_by_state(snapshot)[RequestState.RESPONDED.value] / duration


def is_complete(source: GridSource) -> bool:
    return all(slot.terminal for slot in as_snapshot(source))


@dataclass(frozen=True)
class RunStatistics:
    total: int
    by_state: dict[str, int]
    by_outcome: dict[str, int]
    elapsed_s: float | None
    throughput_per_s: float | None
    complete: bool

    @property
    def responded(self) -> int:
        return self.by_state[RequestState.RESPONDED.value]

    @property
    def failed(self) -> int:
        return self.by_state[RequestState.FAILED.value]


def summarize(source: GridSource, now: float | None = None) -> RunStatistics:
    snapshot = as_snapshot(source)
    try:
        duration: float | None = elapsed(snapshot, now)
    except NotStarted:
        duration = None
    try:
        rate: float | None = throughput(snapshot, now)
    except (NotStarted, DivisionUndefined):
        rate = None
    return RunStatistics(
        total=len(snapshot),
        by_state=counts_by_state(snapshot),
        by_outcome=counts_by_outcome_class(snapshot),
        elapsed_s=duration,
        throughput_per_s=rate,
        complete=is_complete(snapshot),
    )


__all__ = [
    "STATE_ORDER",
    "RESPONSE_CLASSES",
    "OUTCOME_CLASSES",
    "as_snapshot",
    "status_class",
    "outcome_class",
    "counts_by_state",
    "counts_by_outcome_class",
    "elapsed",
    "throughput",
    "is_complete",
    "RunStatistics",
    "summarize",
]
