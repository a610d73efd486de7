import pytest

from sitecache.engine import CacheEngine


class FakeClock:
    """Manually advanced clock so TTL tests don't depend on wall time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheEngine:
    """Engine with default limits on the fake clock. The sweeper is not started."""
    return CacheEngine(clock=clock)
