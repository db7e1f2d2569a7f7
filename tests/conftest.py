from __future__ import annotations

import pytest

from membersync.domain.resilience import Deadline, ExponentialBackoff, Retrier
from tests.support.clock import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def retrier(clock: FakeClock) -> Retrier:
    return Retrier(backoff=ExponentialBackoff(max_jitter_seconds=0), sleep=clock.sleep)


@pytest.fixture
def deadline(clock: FakeClock) -> Deadline:
    return Deadline(60.0, clock=clock)
