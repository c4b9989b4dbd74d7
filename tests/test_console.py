from __future__ import annotations

import io
import threading

import pytest

from helpers import fail, respond
from parbench.console import ConsoleDumpReporter, ConsoleReporter, _PollingReporter, format_duration
from parbench.grid import RequestGrid
from parbench.timing import TimingTracker


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0.0, "00:00:00.0000"),
        (2.0, "00:00:02.0000"),
        (2.005, "00:00:02.0005"),
        (61.25, "00:01:01.0250"),
        (3 * 3600 + 25 * 60 + 7.999, "03:25:07.0999"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_live_tick_prints_state_counts(grid):
    out = io.StringIO()
    respond(grid, 0, 0, 200)

    done = ConsoleReporter(grid, stream=out).tick()

    assert not done
    assert out.getvalue() == "{untried=5, requested=0, responded=1, failed=0}\n"


def test_final_summary_on_completion(grid, clock):
    out = io.StringIO()
    tracker = TimingTracker(grid, clock=clock)
    tracker.mark_started()
    for col in range(3):
        respond(grid, 0, col, 200)
        respond(grid, 1, col, 200)
    clock.advance(2.0)
    tracker.mark_ended()

    done = ConsoleReporter(grid, stream=out).tick()

    assert done
    assert out.getvalue().splitlines() == [
        "{untried=0, requested=0, responded=6, failed=0}",
        "Total Runtime:  00:00:02.0000",
        "Reqs/sec: 3.000000/sec",
    ]


def test_final_summary_without_timing(grid):
    out = io.StringIO()
    for col in range(3):
        fail(grid, 0, col)
        fail(grid, 1, col)

    assert ConsoleReporter(grid, stream=out).tick()
    assert out.getvalue().splitlines()[1:] == ["Total Runtime:  n/a", "Reqs/sec: n/a"]


def test_reporter_thread_stops_after_completion(grid):
    out = io.StringIO()
    reporter = ConsoleReporter(grid, interval=0.01, stream=out)
    reporter.start()
    for col in range(3):
        respond(grid, 0, col, 200)
        fail(grid, 1, col)
    reporter.join(timeout=5.0)

    assert reporter.stopped
    assert "Reqs/sec:" in out.getvalue()


def test_reporter_stop_ends_loop(grid):
    reporter = ConsoleReporter(grid, interval=0.01, stream=io.StringIO())
    reporter.start()
    reporter.stop()
    reporter.join(timeout=5.0)

    assert reporter.stopped


def test_dump_reporter_prints_every_slot():
    grid = RequestGrid(2, 2)
    respond(grid, 0, 1, 404)
    grid.transition(1, 0, "requested")
    out = io.StringIO()

    done = ConsoleDumpReporter(grid, stream=out).tick()

    assert not done
    assert out.getvalue().splitlines() == [
        "[  0] untried responded:404",
        "[  1] requested untried",
    ]


def test_final_summary_waits_for_recorded_end(grid, clock):
    out = io.StringIO()
    tracker = TimingTracker(grid, clock=clock)
    tracker.mark_started()
    for col in range(3):
        respond(grid, 0, col, 200)
        respond(grid, 1, col, 200)
    clock.advance(2.0)
    ender = threading.Timer(0.05, tracker.mark_ended)
    ender.start()

    done = ConsoleReporter(grid, interval=5.0, stream=out).tick()
    ender.join()

    assert done
    assert out.getvalue().splitlines()[1:] == [
        "Total Runtime:  00:00:02.0000",
        "Reqs/sec: 3.000000/sec",
    ]


def test_final_summary_falls_back_to_now_when_end_never_recorded(grid, clock):
    out = io.StringIO()
    TimingTracker(grid, clock=clock).mark_started()
    for col in range(3):
        fail(grid, 0, col)
        fail(grid, 1, col)

    assert ConsoleReporter(grid, interval=0.05, stream=out).tick()
    assert out.getvalue().splitlines()[1] != "Total Runtime:  n/a"


def test_polling_reporter_requires_tick():
    class Silent(_PollingReporter):
        pass

    with pytest.raises(TypeError):
        Silent(RequestGrid(1, 1))
