"""
Baseline result types and the local mean/standard-deviation fallback used when the regression service is skipped or unreachable.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from config import settings
from engine.model import Series, Value, is_missing, valid_values

REMOTE = "remote"
FALLBACK = "fallback"


@dataclass(frozen=True)
class BaselineRequest:
    """One call to the regression service, already trimmed to the window start."""

    y: Tuple[Value, ...]
    bs: int
    be: int
    s: int
    t: int
    method: str
    cumulative: bool = False
    xs: Optional[str] = None

    @property
    def uses_cumulative_endpoint(self) -> bool:
        return self.cumulative and self.s == 1

    def __len__(self) -> int:
        return len(self.y)


@dataclass(frozen=True)
class BaselineResult:
    y: Series
    lower: Series
    upper: Series
    zscore: Optional[Series] = None
    cumulative: bool = False
    source: str = REMOTE

    def __len__(self) -> int:
        return len(self.y)

    def padded(self, n: int) -> BaselineResult:
        """Shift every series right by ``n`` undefined positions."""
        if n <= 0:
            return self
        pad: Series = [None] * n
        return replace(
            self,
            y=pad + list(self.y),
            lower=pad + list(self.lower),
            upper=pad + list(self.upper),
            zscore=pad + list(self.zscore) if self.zscore is not None else None,
        )


def round_series(values: Series, precision: int | None = None) -> Tuple[Value, ...]:
    if precision is None:
        precision = settings.baseline_data_precision
    return tuple(None if is_missing(v) else round(float(v), precision) for v in values)


def flatten_naive(result: BaselineResult, last_index: int) -> BaselineResult:
    """A naive baseline is a horizontal line at the last fitted value of the window."""
    if not 0 <= last_index < len(result.y):
        return result
    anchor = result.y[last_index]
    if is_missing(anchor):
        return result
    return replace(result, y=[anchor if v is not None else None for v in result.y])


def mean_fallback(
    window: Series,
    observed: Series,
    sigma: float | None = None,
) -> Optional[BaselineResult]:
    """Flat mean ± sigma·std band across the whole of ``observed``.

    Uses the population standard deviation of the valid ``window`` values.
    Returns ``None`` when the window has no valid value at all.
    """
    if sigma is None:
        sigma = settings.baseline_fallback_sigma
    vals = valid_values(window)
    if not vals:
        return None

    arr = np.array(vals, dtype=float)
    m = float(np.mean(arr))
    s = float(np.std(arr))
    n = len(observed)

    zscore: Series = []
    for v in observed:
        if is_missing(v) or s == 0:
            zscore.append(None)
        else:
            zscore.append((float(v) - m) / s)

    return BaselineResult(
        y=[m] * n,
        lower=[m - sigma * s] * n,
        upper=[m + sigma * s] * n,
        zscore=zscore,
        cumulative=False,
        source=FALLBACK,
    )
