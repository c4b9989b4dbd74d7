from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest

from helpers import FakeClock, FakeSession
from parbench.grid import RequestGrid


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def grid() -> RequestGrid:
    return RequestGrid(2, 3)


@pytest.fixture
def make_session():
    """Build a session factory; every session it creates is kept on ``factory.sessions``."""

    def factory(outcomes=200):
        sessions: list[FakeSession] = []

        def build() -> FakeSession:
            session = FakeSession(outcomes)
            sessions.append(session)
            return session

        build.sessions = sessions
        return build

    return factory
