import pytest

from conftest import FakeClock
from datasources.circuit_breaker import CircuitBreaker, CircuitState
from datasources.exceptions import CircuitOpenError, StatsServiceUnavailable


def _breaker(clock, **overrides):
    opts = dict(failure_threshold=3, failure_window=30, reset_timeout=60, success_threshold=2)
    opts.update(overrides)
    return CircuitBreaker("stats", clock=clock, **opts)


def test_opens_after_threshold_failures():
    clock = FakeClock()
    breaker = _breaker(clock)

    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state is CircuitState.closed
    breaker.before_call()

    breaker.record_failure()
    assert breaker.state is CircuitState.open
    with pytest.raises(CircuitOpenError):
        breaker.before_call()


def test_open_circuit_error_is_a_service_outage():
    assert issubclass(CircuitOpenError, StatsServiceUnavailable)


def test_failures_outside_window_are_forgotten():
    clock = FakeClock()
    breaker = _breaker(clock)

    breaker.record_failure()
    breaker.record_failure()
    clock.advance(31)
    breaker.record_failure()

    assert breaker.state is CircuitState.closed
    assert breaker.status()["failures"] == 1


def test_successes_while_closed_do_not_reset_failure_count():
    clock = FakeClock()
    breaker = _breaker(clock)

    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    breaker.record_failure()

    assert breaker.state is CircuitState.open


def test_stays_open_until_reset_timeout():
    clock = FakeClock()
    breaker = _breaker(clock, failure_threshold=1)
    breaker.record_failure()

    clock.advance(59)
    with pytest.raises(CircuitOpenError):
        breaker.before_call()

    clock.advance(1)
    breaker.before_call()
    assert breaker.state is CircuitState.half_open


def test_half_open_failure_reopens_immediately():
    clock = FakeClock()
    breaker = _breaker(clock, failure_threshold=1)
    breaker.record_failure()
    clock.advance(60)
    breaker.before_call()

    breaker.record_failure()

    assert breaker.state is CircuitState.open
    with pytest.raises(CircuitOpenError):
        breaker.before_call()


def test_half_open_closes_after_success_threshold():
    clock = FakeClock()
    breaker = _breaker(clock, failure_threshold=1)
    breaker.record_failure()
    clock.advance(60)
    breaker.before_call()

    breaker.record_success()
    assert breaker.state is CircuitState.half_open
    breaker.record_success()

    assert breaker.state is CircuitState.closed
    assert breaker.status()["failures"] == 0
    breaker.before_call()


def test_status_reports_state_and_age_of_last_failure():
    clock = FakeClock()
    breaker = _breaker(clock)
    assert breaker.status() == {
        "name": "stats",
        "state": "closed",
        "failures": 0,
        "successes": 0,
        "seconds_since_last_failure": None,
    }

    breaker.record_failure()
    clock.advance(2.5)
    status = breaker.status()
    assert status["failures"] == 1
    assert status["seconds_since_last_failure"] == 2.5


def test_defaults_come_from_settings(monkeypatch):
    from config import settings

    monkeypatch.setattr(settings, "stats_breaker_failure_threshold", 7)
    monkeypatch.setattr(settings, "stats_breaker_reset_timeout", 5.0)
    breaker = CircuitBreaker("stats")

    assert breaker.failure_threshold == 7
    assert breaker.reset_timeout == 5.0
    assert breaker.success_threshold >= 1
