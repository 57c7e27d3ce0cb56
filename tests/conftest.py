import os
import sys
from typing import List

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from datasources.base import BaselineConnector
from datasources.exceptions import StatsServiceUnavailable
from engine.baseline.compute import BaselineRequest, BaselineResult
from store.caches import build_caches


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EchoConnector(BaselineConnector):
    """Answers every request with a flat baseline at ``level`` over the trimmed series."""

    health_path = "/"

    def __init__(self, level: float = 100.0, band: float = 10.0, zscore: bool = True):
        super().__init__("http://stats.test")
        self.level = level
        self.band = band
        self.zscore = zscore
        self.requests: List[BaselineRequest] = []

    async def fetch_baseline(self, request: BaselineRequest) -> BaselineResult:
        self.requests.append(request)
        n = len(request)
        return BaselineResult(
            y=[self.level] * n,
            lower=[self.level - self.band] * n,
            upper=[self.level + self.band] * n,
            zscore=[0.0] * n if self.zscore else None,
            cumulative=request.uses_cumulative_endpoint,
        )

    async def ping(self) -> bool:
        return True


class FailingConnector(BaselineConnector):
    health_path = "/"

    def __init__(self, exc: Exception = None):
        super().__init__("http://stats.test")
        self.exc = exc or StatsServiceUnavailable("down")
        self.calls = 0

    async def fetch_baseline(self, request: BaselineRequest) -> BaselineResult:
        self.calls += 1
        raise self.exc

    async def ping(self) -> bool:
        return False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def caches(clock):
    return build_caches(clock=clock)


@pytest.fixture
def echo_connector():
    return EchoConnector()


@pytest.fixture
def failing_connector():
    return FailingConnector()
