"""
Per-entry baseline estimation against the regression service with a local fallback.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from config import settings
from datasources.base import BaselineConnector
from datasources.exceptions import StatsServiceError, StatsServiceTimeout
from engine.baseline.compute import (
    BaselineRequest,
    BaselineResult,
    flatten_naive,
    mean_fallback,
    round_series,
)
from engine.baseline.range import max_baseline_period
from engine.enums import BaselineMethod, Granularity
from engine.excess import apply_excess
from engine.model import Entry, Series, SeriesKeys, valid_values
from engine.periods import label_to_xs
from store import keys
from store.cache import ResultCache

log = logging.getLogger(__name__)


def _fit(values: Optional[Sequence], n: int) -> Series:
    out = list(values or [])[:n]
    if len(out) < n:
        out.extend([None] * (n - len(out)))
    return out


class BaselineEstimator:
    """Computes baseline, prediction interval and z-score series for one entry.

    ``estimate`` never raises for service trouble: an unusable window leaves the
    entry untouched, while a failed or skipped remote call is replaced by the
    flat mean fallback.  Excess series are derived after every baseline.
    """

    def __init__(
        self,
        connector: BaselineConnector,
        cache: Optional[ResultCache[BaselineResult]] = None,
        *,
        precision: Optional[int] = None,
        min_valid_points: Optional[int] = None,
        fallback_sigma: Optional[float] = None,
        max_years: Optional[Dict[str, int]] = None,
    ) -> None:
        self.connector = connector
        self.cache = cache
        self.precision = settings.baseline_data_precision if precision is None else precision
        self.min_valid_points = settings.baseline_min_valid_points if min_valid_points is None else min_valid_points
        self.fallback_sigma = settings.baseline_fallback_sigma if fallback_sigma is None else fallback_sigma
        self.max_years = max_years

    def max_period(self, granularity: Granularity) -> int:
        return max_baseline_period(granularity, self.max_years)

    def build_request(
        self,
        observed: Series,
        labels: Sequence[str],
        start: int,
        end: int,
        method: BaselineMethod,
        granularity: Granularity,
        cumulative: bool,
    ) -> BaselineRequest:
        trimmed = observed[start:]
        return BaselineRequest(
            y=round_series(trimmed, self.precision),
            bs=1,
            be=end - start + 1,
            s=granularity.season_type(),
            t=1 if method.uses_trend else 0,
            method=method.value,
            cumulative=cumulative,
            xs=label_to_xs(labels[start], granularity) if start < len(labels) else None,
        )

    async def estimate(
        self,
        entry: Entry,
        labels: Sequence[str],
        start: int,
        end: int,
        series_keys: SeriesKeys,
        method: BaselineMethod | str,
        granularity: Granularity | str,
        cumulative: bool = False,
    ) -> Entry:
        method = BaselineMethod(method)
        granularity = Granularity(granularity)
        if method is BaselineMethod.auto:
            return entry

        n = len(labels)
        observed = _fit(entry.get(series_keys.observed), n)
        ident = f"{entry.age_group}/{entry.iso3c}"

        if start < 0 or end < start or end >= n:
            log.warning(
                "Invalid baseline window for %s: start=%d end=%d labels=%d (%s)",
                ident, start, end, n, granularity.value,
            )
            return entry

        window = observed[start:end + 1]
        valid = valid_values(window)
        if not valid:
            log.debug("Baseline window for %s holds no data", ident)
            return entry
        if len(valid) < self.min_valid_points:
            log.warning(
                "Insufficient data points for baseline %s: valid=%d window=%d (%s)",
                ident, len(valid), len(window), granularity.value,
            )
            return entry

        period_length = end - start + 1
        max_period = self.max_period(granularity)
        result: Optional[BaselineResult] = None
        if period_length > max_period:
            log.warning(
                "Baseline period too large for %s: %d > %d (%s), using mean fallback",
                ident, period_length, max_period, granularity.value,
            )
        else:
            request = self.build_request(observed, labels, start, end, method, granularity, cumulative)
            remote = await self._remote(request, ident)
            if remote is not None:
                result = remote.padded(start)

        if result is None:
            result = mean_fallback(window, observed, self.fallback_sigma)
        if result is None:
            return entry
        return self._apply(entry, series_keys, result, start)

    async def _remote(self, request: BaselineRequest, ident: str) -> Optional[BaselineResult]:
        fp = keys.baseline(request)
        if self.cache is not None:
            cached = self.cache.get(fp)
            if cached is not None:
                log.debug("Baseline cache hit for %s", ident)
                return cached

        try:
            result = await self.connector.fetch_baseline(request)
        except StatsServiceTimeout as exc:
            log.warning("Baseline request timed out for %s, using mean fallback: %s", ident, exc)
            return None
        except StatsServiceError as exc:
            log.warning("Baseline calculation failed for %s, using mean fallback: %s", ident, exc)
            return None
        except Exception as exc:
            log.exception("Unexpected baseline failure for %s, using mean fallback: %s", ident, exc)
            return None

        if request.method == BaselineMethod.naive.value:
            result = flatten_naive(result, request.be - 1)
        if self.cache is not None:
            self.cache.set(fp, result)
        return result

    def _apply(self, entry: Entry, series_keys: SeriesKeys, result: BaselineResult, start: int) -> Entry:
        updates: Dict[str, Series] = {
            series_keys.baseline: list(result.y),
            series_keys.lower: list(result.lower),
            series_keys.upper: list(result.upper),
        }
        if result.zscore is not None:
            updates[series_keys.zscore] = list(result.zscore)
        updated = entry.with_series(**updates)
        return apply_excess(updated, series_keys, cumulative=result.cumulative, start=start)
