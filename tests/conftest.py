"""Shared test fixtures and configuration for all tests.

This conftest.py provides a controllable clock, a scripted resolver and
settings used across unit and integration tests.
"""

import asyncio

import pytest

from failover_retry.config import Settings
from failover_retry.retry.exceptions import ResolutionError


class MockClock:
    """Clock whose sleep() advances virtual time instead of waiting.

    Example:
        clock = MockClock(start=100.0)
        await clock.sleep(0.5)
        assert clock.monotonic() == 100.5
    """

    def __init__(self, start: float = 100.0) -> None:
        self._current = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Cannot go back in time")
        self._current += seconds

    async def sleep(self, seconds: float) -> None:
        seconds = max(seconds, 0.0)
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


class FakeResolver:
    """Resolver answering from a host -> answer table.

    An answer is a list of addresses or an exception instance to raise.
    A tuple of answers is consumed one per call; the last one sticks.
    Hosts missing from the table fail to resolve.
    """

    def __init__(self, table: dict) -> None:
        self.table = table
        self.calls: list[str] = []

    async def resolve(self, host: str) -> list[str]:
        self.calls.append(host)
        answer = self.table.get(host)
        if isinstance(answer, tuple):
            index = min(self.calls.count(host) - 1, len(answer) - 1)
            answer = answer[index]
        if answer is None:
            raise ResolutionError(host, "unknown host")
        if isinstance(answer, Exception):
            raise answer
        return list(answer)


def _no_shuffle(items: list) -> None:
    pass


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def make_resolver():
    """Factory fixture building a FakeResolver.

    Usage:
        def test_something(make_resolver):
            resolver = make_resolver({"a.example": ["10.0.0.1"]})
    """
    return FakeResolver


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with small delays and metrics disabled."""
    return Settings(
        APP_NAME="Failover Retry (Test)",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        KEYSERVER_URIS=["https://a.example", "https://b.example"],
        KEY_RESOLUTION_TIMEOUT=5.0,
        RETRY_COUNT=6,
        RETRY_INITIAL_DELAY=0.05,
        RETRY_MAXIMUM_DELAY=0.4,
        MIN_LOGGABLE_TIMEOUT=1.0,
        INITIAL_ATTEMPT_TIMEOUT=0.25,
        MAX_ATTEMPT_TIMEOUT=2.0,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def no_shuffle():
    """Deterministic stand-in for random.shuffle."""
    return _no_shuffle
