"""
Test cases for baseline result helpers and the local mean fallback.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from engine.baseline.compute import (
    FALLBACK,
    BaselineRequest,
    BaselineResult,
    flatten_naive,
    mean_fallback,
    round_series,
)


def test_mean_fallback_flat_band_over_whole_series():
    window = [8.0, 12.0, None, 8.0, 12.0]
    observed = window + [20.0, None]
    result = mean_fallback(window, observed)

    assert result.source == FALLBACK
    assert result.y == [10.0] * 7
    assert result.lower == [6.0] * 7
    assert result.upper == [14.0] * 7
    assert result.zscore[0] == pytest.approx(-1.0)
    assert result.zscore[5] == pytest.approx(5.0)
    assert result.zscore[2] is None
    assert result.zscore[6] is None


def test_mean_fallback_zero_sigma():
    result = mean_fallback([10.0] * 26, [10.0] * 30)
    assert result.y == [10.0] * 30
    assert result.lower == [10.0] * 30
    assert result.upper == [10.0] * 30
    assert result.zscore == [None] * 30


def test_mean_fallback_without_valid_values():
    assert mean_fallback([None, float("nan")], [None, None]) is None


def test_mean_fallback_custom_sigma():
    result = mean_fallback([8.0, 12.0], [8.0, 12.0], sigma=1.0)
    assert result.lower == [8.0, 8.0]
    assert result.upper == [12.0, 12.0]


def test_padded_shifts_every_series():
    result = BaselineResult(y=[1.0, 2.0], lower=[0.5, 1.5], upper=[1.5, 2.5], zscore=[0.1, None])
    shifted = result.padded(2)
    assert shifted.y == [None, None, 1.0, 2.0]
    assert shifted.lower == [None, None, 0.5, 1.5]
    assert shifted.upper == [None, None, 1.5, 2.5]
    assert shifted.zscore == [None, None, 0.1, None]
    assert result.padded(0) is result


def test_flatten_naive_uses_last_window_value():
    result = BaselineResult(y=[1.0, 2.0, 3.0, None, 5.0], lower=[0.0] * 5, upper=[9.0] * 5)
    flat = flatten_naive(result, 2)
    assert flat.y == [3.0, 3.0, 3.0, None, 3.0]
    assert flat.lower == result.lower
    assert flatten_naive(result, 3) is result
    assert flatten_naive(result, 10) is result


def test_round_series():
    assert round_series([1.234567, None, float("nan"), 2], precision=2) == (1.23, None, None, 2.0)


def test_cumulative_endpoint_only_for_non_seasonal():
    base = dict(y=(1.0,), bs=1, be=1, t=0, method="mean")
    assert BaselineRequest(s=1, cumulative=True, **base).uses_cumulative_endpoint
    assert not BaselineRequest(s=3, cumulative=True, **base).uses_cumulative_endpoint
    assert not BaselineRequest(s=1, cumulative=False, **base).uses_cumulative_endpoint
