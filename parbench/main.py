from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from pathlib import Path

from .config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_REQUESTS,
    DEFAULT_SCALE,
    DEFAULT_TIMEOUT_S,
    DISPLAYS,
    BenchConfig,
    parse_displays,
)
from .console import ConsoleDumpReporter, ConsoleReporter
from .errors import ConfigError, InvalidDimensions
from .grid import RequestGrid
from .timing import TimingTracker
from .workers import RequestWorkerPool

LOGGER = logging.getLogger("parbench")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="parbench",
        description="Fire concurrent HTTP requests and watch every one of them live",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=os.environ.get("PARBENCH_URL"),
        help="Target URL (env PARBENCH_URL)",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=os.environ.get("PARBENCH_CONCURRENCY", DEFAULT_CONCURRENCY),
        help="Number of concurrent workers (grid rows)",
    )
    parser.add_argument(
        "-r",
        "--requests",
        type=int,
        default=os.environ.get("PARBENCH_REQUESTS", DEFAULT_REQUESTS),
        help="Requests issued by each worker (grid columns)",
    )
    parser.add_argument(
        "-s",
        "--scale",
        type=int,
        default=os.environ.get("PARBENCH_SCALE", DEFAULT_SCALE),
        help="Pixels per grid cell in the gui display",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=os.environ.get("PARBENCH_TIMEOUT", DEFAULT_TIMEOUT_S),
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "-u",
        "--ui",
        action="append",
        default=None,
        help=f"Display to attach, repeatable or comma separated ({', '.join(DISPLAYS)})",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("PARBENCH_OUTPUT_DIR"),
        help="Directory to store the per-request CSV, outcome chart and run manifest",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("PARBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> BenchConfig:
    displays = parse_displays(args.ui if args.ui is not None else os.environ.get("PARBENCH_UI"))
    return BenchConfig(
        url=args.url or "",
        concurrency=args.concurrency,
        requests=args.requests,
        scale=args.scale,
        timeout=args.timeout,
        displays=displays,
        output_dir=Path(args.output_dir) if args.output_dir else None,
        log_level=args.log_level,
    )


def build_reporters(config: BenchConfig, grid: RequestGrid) -> list[ConsoleReporter | ConsoleDumpReporter]:
    reporters: list[ConsoleReporter | ConsoleDumpReporter] = []
    if "console" in config.displays:
        reporters.append(ConsoleReporter(grid))
    if "console-full" in config.displays:
        reporters.append(ConsoleDumpReporter(grid))
    return reporters


def run_benchmark(tracker: TimingTracker, pool: RequestWorkerPool, prewarm: bool = False) -> None:
    if prewarm:
        tracker.wait_until_rendered()
    tracker.mark_started()
    try:
        pool.run()
    finally:
        tracker.mark_ended()


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    config = build_config(args)
    try:
        config.validate()
    except (InvalidDimensions, ConfigError) as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    grid = RequestGrid(config.concurrency, config.requests)
    tracker = TimingTracker(grid)
    pool = RequestWorkerPool(grid, config.url, timeout=config.timeout)
    reporters = build_reporters(config, grid)

    LOGGER.info(
        "Benchmarking %s with %d worker(s) x %d request(s), displays: %s",
        config.url,
        config.concurrency,
        config.requests,
        ", ".join(config.displays),
    )

    for reporter in reporters:
        reporter.start()

    try:
        if "gui" in config.displays:
            from .gui import GridRenderer

            renderer = GridRenderer(grid, config.scale)
            bench_thread = threading.Thread(
                target=run_benchmark,
                args=(tracker, pool),
                kwargs={"prewarm": True},
                name="parbench-bench",
                daemon=True,
            )
            bench_thread.start()
            renderer.show()
            if bench_thread.is_alive():
                LOGGER.info("Window closed, waiting for in-flight requests")
                pool.stop()
                bench_thread.join(timeout=config.timeout + 1.0)
        else:
            run_benchmark(tracker, pool)
    except KeyboardInterrupt:
        print("stopping benchmark", file=sys.stderr)
        pool.stop()
        pool.join(timeout=config.timeout + 1.0)

    complete = tracker.is_complete()
    for reporter in reporters:
        if not complete:
            reporter.stop()
        reporter.join(timeout=5.0)

    if config.output_dir is not None:
        from .report import write_run_artifacts

        write_run_artifacts(grid.snapshot(), config.output_dir)

    if not complete:
        LOGGER.warning("Benchmark stopped before every request finished")
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
