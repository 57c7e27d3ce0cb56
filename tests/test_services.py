import pytest

from config import settings
from conftest import EchoConnector
from datasources.exceptions import InvalidBaselineWindow
from engine.baseline.estimator import BaselineEstimator
from engine.enums import BaselineMethod, Granularity
from engine.model import RawEntry
from engine.orchestrator import BaselineOrchestrator
from services.baseline_service import BaselineJob, BaselineService, resolve_window
from services.chart_config_service import get_chart_config
from services.metadata_service import get_metadata, invalidate_metadata

LABELS = [str(y) for y in range(2010, 2023)]


def _service(caches, connector=None):
    estimator = BaselineEstimator(connector or EchoConnector(), caches.baseline)
    return BaselineService(BaselineOrchestrator(estimator, max_concurrency=2), caches)


def _raw():
    values = [float(100 + i) for i in range(len(LABELS))]
    return {
        "all": {
            "SWE": RawEntry("all", "SWE", list(LABELS), {"deaths": values, "population": [1e6] * len(LABELS)}),
        },
        "0-64": {
            "SWE": RawEntry("0-64", "SWE", LABELS[3:], {"deaths": values[3:]}),
            "NOR": RawEntry("0-64", "NOR", [], {}),
        },
    }


def test_resolve_window_defaults():
    assert resolve_window(LABELS, Granularity.yearly, None, None) == (7, 9)


def test_resolve_window_explicit_and_tolerant():
    assert resolve_window(LABELS, Granularity.yearly, "2015", "2019") == (5, 9)
    assert resolve_window(LABELS, Granularity.yearly, "2005", "2012") == (0, 2)


def test_resolve_window_rejects_inverted_range():
    with pytest.raises(InvalidBaselineWindow):
        resolve_window(LABELS, Granularity.yearly, "2019", "2015")


def test_resolve_window_keeps_oversized_window_unless_clamped():
    labels = [str(y) for y in range(1900, 2001)]
    assert resolve_window(labels, Granularity.yearly, "1900", "2000") == (0, 100)
    assert resolve_window(labels, Granularity.yearly, "1900", "2000", clamp=True) == (0, 49)
    assert resolve_window(labels, Granularity.yearly, "1900", "2000", clamp=True, limits={"yearly": 10}) == (0, 9)
    assert resolve_window(labels, Granularity.yearly, "1990", "2000", clamp=True) == (90, 100)


@pytest.mark.asyncio
async def test_compute_clamps_window_on_request(caches):
    connector = EchoConnector()
    job = BaselineJob(
        labels=LABELS,
        data_key="deaths",
        granularity=Granularity.yearly,
        method=BaselineMethod.mean,
        baseline_from="2010",
        baseline_to="2019",
        clamp_baseline=True,
    )
    service = BaselineService(
        BaselineOrchestrator(BaselineEstimator(connector, caches.baseline, max_years={"yearly": 4})), caches,
    )
    await service.compute(_raw(), job)
    assert connector.requests
    assert all(r.be == 4 for r in connector.requests)


@pytest.mark.asyncio
async def test_compute_writes_baselines_and_excess(caches):
    connector = EchoConnector()
    job = BaselineJob(labels=LABELS, data_key="deaths", granularity=Granularity.yearly, method=BaselineMethod.mean)
    aligned = await _service(caches, connector).compute(_raw(), job)

    entry = aligned.dataset.get("all", "SWE")
    assert entry.get("deaths_baseline") == [None] * 7 + [100.0] * 6
    assert len(entry.get("deaths_excess")) == len(LABELS)
    assert len(aligned.dataset.get("0-64", "SWE").get("deaths")) == len(LABELS)
    assert aligned.no_data == {"NOR": {"all", "0-64"}}
    assert all(r.be == 3 for r in connector.requests)


@pytest.mark.asyncio
async def test_compute_reports_progress(caches):
    progress = []
    job = BaselineJob(labels=LABELS, data_key="deaths", granularity=Granularity.yearly, method=BaselineMethod.mean)
    await _service(caches).compute(_raw(), job, progress_cb=lambda c, t: progress.append((c, t)))
    assert progress[0] == (0, 2)
    assert progress[-1] == (2, 2)


@pytest.mark.asyncio
async def test_compute_without_method_only_aligns(caches):
    connector = EchoConnector()
    job = BaselineJob(labels=LABELS, data_key="deaths", granularity=Granularity.yearly)
    aligned = await _service(caches, connector).compute(_raw(), job)
    assert connector.requests == []
    assert "deaths_baseline" not in aligned.dataset.get("all", "SWE").series


@pytest.mark.asyncio
async def test_population_never_gets_a_baseline(caches):
    connector = EchoConnector()
    job = BaselineJob(labels=LABELS, data_key="population", granularity=Granularity.yearly, method=BaselineMethod.mean)
    await _service(caches, connector).compute(_raw(), job)
    assert connector.requests == []


def test_from_settings_wires_connector_and_caches():
    service = BaselineService.from_settings()
    estimator = service.orchestrator.estimator
    assert estimator.connector.base_url == settings.stats_url.rstrip("/")
    assert estimator.cache is service.caches.baseline
    assert service.orchestrator.max_concurrency == settings.baseline_max_concurrency
    breaker = estimator.connector.breaker
    assert breaker.failure_threshold == settings.stats_breaker_failure_threshold
    assert breaker.failure_window == settings.stats_breaker_failure_window
    assert breaker.reset_timeout == settings.stats_breaker_reset_timeout
    assert breaker.success_threshold == settings.stats_breaker_success_threshold


@pytest.mark.asyncio
async def test_metadata_is_cached_per_scope(caches):
    calls = []

    async def loader(countries):
        calls.append(countries)
        return {"countries": countries or ["ALL"]}

    first = await get_metadata(caches.metadata, loader, ["SWE", "NOR"])
    second = await get_metadata(caches.metadata, loader, ["NOR", "SWE"])
    assert first is second
    assert len(calls) == 1

    await get_metadata(caches.metadata, loader)
    assert len(calls) == 2

    assert invalidate_metadata(caches.metadata, ["SWE", "NOR"])
    await get_metadata(caches.metadata, loader, ["SWE", "NOR"])
    assert len(calls) == 3


def test_chart_config_is_built_once(caches):
    built = []
    data = [{"label": "SWE", "data": [1.0, 2.0]}]

    def builder():
        built.append(1)
        return {"type": "line"}

    a = get_chart_config(caches.chart_config, builder, "line", data, show_pi=True)
    b = get_chart_config(caches.chart_config, builder, "line", data, show_pi=True)
    get_chart_config(caches.chart_config, builder, "line", data, show_pi=False)
    assert a is b
    assert len(built) == 2
