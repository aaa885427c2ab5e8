"""Pytest unit test fixtures."""

import pytest

from librarian.core.rate_limit import QuotaStore
from librarian.guard.admission import InputGuard


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def quota(clock):
    return QuotaStore(max_requests=3, window_seconds=60.0, max_clients=100, clock=clock)


@pytest.fixture()
def guard(settings, quota):
    return InputGuard(settings, quota)
