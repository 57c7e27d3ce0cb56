"""
Default baseline date ranges and per-granularity window length limits.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from config import MAX_BASELINE_YEARS, settings
from engine.enums import Granularity


@dataclass(frozen=True)
class BaselineRange:
    start: str
    end: str


@dataclass(frozen=True)
class BaselineValidation:
    is_valid: bool
    period_length: int
    max_period: int
    max_years: int
    exceeded_by: Optional[int] = None


def max_baseline_years(granularity: Granularity, limits: Optional[Dict[str, int]] = None) -> int:
    """Years cap for ``granularity``; families missing from ``limits`` keep their default."""
    merged = {**MAX_BASELINE_YEARS, **(limits if limits is not None else settings.max_baseline_years)}
    return int(merged[granularity.cap_family()])


def max_baseline_period(granularity: Granularity, limits: Optional[Dict[str, int]] = None) -> int:
    return max_baseline_years(granularity, limits) * granularity.periods_per_year()


def baseline_year(granularity: Granularity) -> int:
    if granularity.is_seasonal_year:
        return settings.default_seasonal_baseline_year
    return settings.default_baseline_year


def default_baseline_range(
    granularity: Granularity,
    labels: Sequence[str],
    yearly_labels: Optional[Sequence[str]] = None,
) -> Optional[BaselineRange]:
    """Pick a ``min_baseline_span``-year window starting at the default baseline year.

    ``yearly_labels`` is the yearly representation of the timeline (``"2017"``
    or ``"2016/17"``); it defaults to the year prefix of every label.
    """
    if not labels:
        return None

    span = settings.min_baseline_span
    year = baseline_year(granularity)
    year_str = str(year)
    yearly = list(yearly_labels) if yearly_labels is not None else [label[:4] for label in labels]

    if not any(y == year_str or y.startswith(year_str + "/") for y in yearly):
        to_idx = min(len(labels) - 1, span)
        return BaselineRange(start=labels[0], end=labels[to_idx])

    from_idx = next((i for i, label in enumerate(labels) if label[:4] == year_str), -1)
    if from_idx == -1:
        return None

    boundary = str(year + span)
    boundary_idx = next(
        (i for i, label in enumerate(labels) if i > from_idx and label[:4] == boundary),
        -1,
    )
    if boundary_idx != -1:
        to_idx = boundary_idx - 1
    else:
        to_idx = min(len(labels) - 1, from_idx + span - 1)

    return BaselineRange(start=labels[from_idx], end=labels[to_idx])


def validate_baseline_period(
    granularity: Granularity,
    labels: Sequence[str],
    start: str,
    end: str,
    limits: Optional[Dict[str, int]] = None,
) -> BaselineValidation:
    max_period = max_baseline_period(granularity, limits)
    max_years = max_baseline_years(granularity, limits)

    try:
        from_idx = list(labels).index(start)
        to_idx = list(labels).index(end)
    except ValueError:
        return BaselineValidation(False, 0, max_period, max_years)

    length = to_idx - from_idx + 1
    if length <= max_period:
        return BaselineValidation(True, length, max_period, max_years)
    return BaselineValidation(False, length, max_period, max_years, exceeded_by=length - max_period)


def clamp_baseline_period(
    granularity: Granularity,
    labels: Sequence[str],
    start: str,
    end: str,
    limits: Optional[Dict[str, int]] = None,
) -> BaselineRange:
    """Shorten an oversized window by moving its end, keeping the start."""
    validation = validate_baseline_period(granularity, labels, start, end, limits)
    if validation.is_valid or start not in labels:
        return BaselineRange(start=start, end=end)

    from_idx = list(labels).index(start)
    max_end = min(from_idx + validation.max_period - 1, len(labels) - 1)
    return BaselineRange(start=start, end=labels[max_end])
