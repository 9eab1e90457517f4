import pytest

from fixtures.vision_fixtures import RecordingSleep
from tailor.core.cache import ResponseCache
from tailor.core.config import Settings
from tailor.core.retry import RetryPolicy


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Settings(OPENAI_API_KEY="sk-test", RATE_LIMIT_MAX_CALLS=0, _env_file=None)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def cache(clock):
    return ResponseCache(300, clock=clock)


@pytest.fixture
def policy():
    return RetryPolicy(max_attempts=3, initial_delay_s=1.0, max_delay_s=10.0, multiplier=2.0)
