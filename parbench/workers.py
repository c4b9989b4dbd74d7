from __future__ import annotations

import logging
import threading
from typing import Callable

import requests

from .grid import RequestGrid, RequestState

LOGGER = logging.getLogger("parbench.workers")

DEFAULT_TIMEOUT_S = 10.0


def create_session() -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = "parbench"
    return session


class RequestWorkerPool:
    """One thread per grid row, each issuing its row's requests in order."""

    def __init__(
        self,
        grid: RequestGrid,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        method: str = "GET",
        session_factory: Callable[[], requests.Session] | None = None,
    ) -> None:
        self._grid = grid
        self._url = url
        self._timeout = timeout
        self._method = method
        self._session_factory = session_factory
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("worker pool already started")
        LOGGER.info(
            "Starting %d worker(s), %d request(s) each, against %s",
            self._grid.concurrency,
            self._grid.requests,
            self._url,
        )
        for row in range(self._grid.concurrency):
            thread = threading.Thread(
                target=self._run_row,
                args=(row,),
                name=f"parbench-worker-{row}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def join(self, timeout: float | None = None) -> bool:
        for thread in self._threads:
            thread.join(timeout=timeout)
        return not any(thread.is_alive() for thread in self._threads)

    def run(self) -> None:
        self.start()
        self.join()

    def stop(self) -> None:
        self._stop_event.set()

    def _run_row(self, row: int) -> None:
        factory = self._session_factory or create_session
        session: requests.Session | None = None
        col = 0
        try:
            session = factory()
            for col in range(self._grid.requests):
                if self._stop_event.is_set():
                    LOGGER.info("Worker %d stopping before request %d", row, col)
                    return
                self._fire(session, row, col)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Worker %d aborted at request %d", row, col)
            self._abandon_row(row, col)
        finally:
            if session is not None:
                session.close()

    def _abandon_row(self, row: int, from_col: int) -> None:
        # Remaining slots of the row end as failed so the run can still complete.
        for col in range(from_col, self._grid.requests):
            state = self._grid.slot(row, col).state
            if state is RequestState.UNTRIED:
                self._grid.transition(row, col, RequestState.REQUESTED)
                state = RequestState.REQUESTED
            if state is RequestState.REQUESTED:
                self._grid.transition(row, col, RequestState.FAILED)

    def _fire(self, session: requests.Session, row: int, col: int) -> None:
        self._grid.transition(row, col, RequestState.REQUESTED)
        try:
            response = session.request(self._method, self._url, timeout=self._timeout)
        except requests.RequestException as exc:
            LOGGER.debug("Request (%d, %d) failed: %s", row, col, exc)
            self._grid.transition(row, col, RequestState.FAILED)
            return
        self._grid.transition(row, col, RequestState.RESPONDED, response.status_code)


__all__ = ["DEFAULT_TIMEOUT_S", "create_session", "RequestWorkerPool"]
