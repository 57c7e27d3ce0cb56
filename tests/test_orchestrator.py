import asyncio

import pytest

from conftest import EchoConnector, FailingConnector
from engine.baseline.estimator import BaselineEstimator
from engine.model import Dataset, Entry, SeriesKeys
from engine.orchestrator import BaselineOrchestrator

KEYS = SeriesKeys.for_metric("deaths")
LABELS = [str(y) for y in range(2010, 2020)]


def _dataset(countries):
    return Dataset([Entry("all", iso, {"deaths": [float(i) for i in range(10)]}) for iso in countries])


class SlowConnector(EchoConnector):
    def __init__(self):
        super().__init__()
        self.in_flight = 0
        self.peak = 0

    async def fetch_baseline(self, request):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().fetch_baseline(request)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_progress_reported_up_front_and_per_entry():
    progress = []
    ds = _dataset(["SWE", "NOR", "DNK"])
    orch = BaselineOrchestrator(BaselineEstimator(EchoConnector()), max_concurrency=4)

    result = await orch.run(ds, LABELS, 2, 8, KEYS, "mean", "yearly", progress_cb=lambda c, t: progress.append((c, t)))

    assert result is ds
    assert progress[0] == (0, 3)
    assert progress[-1] == (3, 3)
    assert [c for c, _ in progress] == [0, 1, 2, 3]
    for entry in ds:
        assert entry.get("deaths_baseline")[2:] == [100.0] * 8
        assert "deaths_excess" in entry.series


@pytest.mark.asyncio
async def test_fan_out_respects_concurrency_limit():
    connector = SlowConnector()
    ds = _dataset(["A", "B", "C", "D", "E", "F"])
    orch = BaselineOrchestrator(BaselineEstimator(connector), max_concurrency=2)

    await orch.run(ds, LABELS, 0, 9, KEYS, "mean", "yearly")

    assert len(connector.requests) == 6
    assert connector.peak == 2


@pytest.mark.asyncio
async def test_failing_service_never_aborts_the_batch():
    ds = _dataset(["SWE", "NOR"])
    ds.add(Entry("0-64", "SWE", {"deaths": [None] * 10}))
    orch = BaselineOrchestrator(BaselineEstimator(FailingConnector()))

    await orch.run(ds, LABELS, 0, 9, KEYS, "mean", "yearly")

    assert ds.get("all", "SWE").get("deaths_baseline") == [4.5] * 10
    assert ds.get("all", "NOR").get("deaths_baseline") == [4.5] * 10
    assert "deaths_baseline" not in ds.get("0-64", "SWE").series


def test_concurrency_floor():
    orch = BaselineOrchestrator(BaselineEstimator(EchoConnector()), max_concurrency=0)
    assert orch.max_concurrency == 1


class KeyErrorEstimator(BaselineEstimator):
    async def estimate(self, entry, *args, **kwargs):
        if entry.iso3c == "NOR":
            raise KeyError("deaths")
        return await super().estimate(entry, *args, **kwargs)


@pytest.mark.asyncio
async def test_estimator_error_leaves_entry_untouched_and_batch_completes():
    progress = []
    ds = _dataset(["SWE", "NOR", "DNK"])
    orch = BaselineOrchestrator(KeyErrorEstimator(EchoConnector()), max_concurrency=2)

    await orch.run(ds, LABELS, 0, 9, KEYS, "mean", "yearly", progress_cb=lambda c, t: progress.append((c, t)))

    assert progress[-1] == (3, 3)
    assert ds.get("all", "SWE").get("deaths_baseline") == [100.0] * 10
    assert ds.get("all", "DNK").get("deaths_baseline") == [100.0] * 10
    assert "deaths_baseline" not in ds.get("all", "NOR").series
    assert ds.get("all", "NOR").get("deaths") == [float(i) for i in range(10)]
