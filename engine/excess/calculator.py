"""
Excess mortality and excess prediction-interval series derived from observed values and a baseline.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from engine.model import Entry, Series, SeriesKeys, Value, is_missing


@dataclass(frozen=True)
class ExcessSeries:
    excess: Series
    lower: Series
    upper: Series


def _at(values: Optional[Sequence[Value]], i: int) -> Value:
    if values is None or i >= len(values):
        return None
    return values[i]


def cumulative_sum_from(values: Sequence[Value], start: int) -> Series:
    """Running total from ``start`` onwards; earlier positions stay undefined.

    Missing values add nothing. A NaN shows up at its own position but does
    not poison the running total.
    """
    out: Series = []
    prev = 0.0
    for i, v in enumerate(values):
        if i < start:
            out.append(None)
            continue
        val = 0.0 if v is None else float(v)
        curr = prev + val
        out.append(curr)
        if not math.isnan(val):
            prev = curr
    return out


def calculate_excess(
    observed: Sequence[Value],
    baseline: Optional[Sequence[Value]],
    lower: Optional[Sequence[Value]],
    upper: Optional[Sequence[Value]],
    cumulative: bool = False,
    start: int = 0,
) -> ExcessSeries:
    """Observed minus baseline, position by position.

    A missing (``None`` or NaN) observed or baseline value counts as 0 for the
    central excess.  The bound series stay undefined wherever the matching
    baseline bound is missing; they are never coerced to a number.
    """
    current = cumulative_sum_from(observed, start) if cumulative else list(observed)

    excess: Series = []
    excess_lower: Series = []
    excess_upper: Series = []
    for i, value in enumerate(current):
        cur = 0.0 if is_missing(value) else float(value)
        base = _at(baseline, i)
        base_lower = _at(lower, i)
        base_upper = _at(upper, i)

        excess.append(cur - (0.0 if is_missing(base) else float(base)))
        excess_lower.append(None if is_missing(base_lower) else cur - float(base_lower))
        excess_upper.append(None if is_missing(base_upper) else cur - float(base_upper))

    return ExcessSeries(excess=excess, lower=excess_lower, upper=excess_upper)


def apply_excess(entry: Entry, keys: SeriesKeys, cumulative: bool = False, start: int = 0) -> Entry:
    observed = entry.get(keys.observed) or []
    result = calculate_excess(
        observed,
        entry.get(keys.baseline),
        entry.get(keys.lower),
        entry.get(keys.upper),
        cumulative=cumulative,
        start=start,
    )
    return entry.with_series(**{
        keys.excess: result.excess,
        keys.excess_lower: result.lower,
        keys.excess_upper: result.upper,
    })
