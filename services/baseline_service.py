"""
Baseline service: aligns raw entries, resolves the baseline window and runs the orchestrator.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from config import Settings, settings as default_settings
from connectors.stats import StatsConnector
from datasources.circuit_breaker import CircuitBreaker
from datasources.exceptions import InvalidBaselineWindow
from engine.alignment import align_dataset
from engine.baseline.estimator import BaselineEstimator
from engine.baseline.range import clamp_baseline_period, default_baseline_range, validate_baseline_period
from engine.enums import BaselineMethod, Granularity
from engine.model import AlignedData, RawEntry, SeriesKeys
from engine.orchestrator import BaselineOrchestrator, ProgressCallback
from engine.periods import PeriodIndex
from store.caches import CacheRegistry, build_caches

log = logging.getLogger(__name__)

# denominators, never given a baseline
_NO_BASELINE_KEYS = {"population"}


@dataclass
class BaselineJob:
    labels: List[str]
    data_key: str
    granularity: Granularity
    method: Optional[BaselineMethod] = None
    baseline_from: Optional[str] = None
    baseline_to: Optional[str] = None
    cumulative: bool = False
    age_groups: Optional[List[str]] = None
    countries: Optional[List[str]] = None
    clamp_baseline: bool = False


def resolve_window(
    labels: Sequence[str],
    granularity: Granularity,
    baseline_from: Optional[str],
    baseline_to: Optional[str],
    clamp: bool = False,
    limits: Optional[Dict[str, int]] = None,
) -> Tuple[int, int]:
    """Map the baseline bounds onto timeline indices.

    Missing bounds come from the default baseline range.  With ``clamp`` an
    oversized window is shortened to the per-granularity cap; without it the
    window is kept and the estimator answers it with the mean fallback.
    """
    if baseline_from is None or baseline_to is None:
        default = default_baseline_range(granularity, labels)
        if default is None:
            raise InvalidBaselineWindow("cannot derive a default baseline range")
        baseline_from = baseline_from or default.start
        baseline_to = baseline_to or default.end

    period = PeriodIndex(labels)
    if not period.is_valid_range(baseline_from, baseline_to):
        raise InvalidBaselineWindow(f"baseline start {baseline_from!r} is after end {baseline_to!r}")
    start = period.index_of(baseline_from)
    end = period.index_of(baseline_to)

    if clamp:
        validation = validate_baseline_period(granularity, labels, labels[start], labels[end], limits)
        if not validation.is_valid:
            clamped = clamp_baseline_period(granularity, labels, labels[start], labels[end], limits)
            log.warning(
                "Baseline window %s..%s exceeds %d periods, clamped to %s..%s",
                labels[start], labels[end], validation.max_period, clamped.start, clamped.end,
            )
            end = period.index_of(clamped.end)
    return start, end


class BaselineService:
    def __init__(self, orchestrator: BaselineOrchestrator, caches: CacheRegistry) -> None:
        self.orchestrator = orchestrator
        self.caches = caches

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None, caches: Optional[CacheRegistry] = None) -> BaselineService:
        cfg = cfg or default_settings
        caches = caches or build_caches(cfg)
        connector = StatsConnector(
            cfg.stats_url,
            timeout=cfg.stats_timeout,
            retries=cfg.stats_retries,
            retry_delay=cfg.stats_retry_delay,
            breaker=CircuitBreaker(
                "stats",
                failure_threshold=cfg.stats_breaker_failure_threshold,
                failure_window=cfg.stats_breaker_failure_window,
                reset_timeout=cfg.stats_breaker_reset_timeout,
                success_threshold=cfg.stats_breaker_success_threshold,
            ),
        )
        estimator = BaselineEstimator(
            connector,
            caches.baseline,
            precision=cfg.baseline_data_precision,
            min_valid_points=cfg.baseline_min_valid_points,
            fallback_sigma=cfg.baseline_fallback_sigma,
            max_years=cfg.max_baseline_years,
        )
        return cls(BaselineOrchestrator(estimator, cfg.baseline_max_concurrency), caches)

    async def compute(
        self,
        raw: Dict[str, Dict[str, RawEntry]],
        job: BaselineJob,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> AlignedData:
        aligned = align_dataset(
            raw,
            job.labels,
            data_key=None if job.method else job.data_key,
            age_groups=job.age_groups,
            countries=job.countries,
        )
        if not job.method or job.data_key in _NO_BASELINE_KEYS or not job.labels:
            return aligned

        start, end = resolve_window(
            job.labels,
            job.granularity,
            job.baseline_from,
            job.baseline_to,
            clamp=job.clamp_baseline,
            limits=self.orchestrator.estimator.max_years,
        )
        log.info(
            "Computing %s baselines for %d entries (%s, window %s..%s)",
            job.method.value, len(aligned.dataset), job.granularity.value,
            job.labels[start], job.labels[end],
        )
        await self.orchestrator.run(
            aligned.dataset,
            aligned.labels,
            start,
            end,
            SeriesKeys.for_metric(job.data_key),
            job.method,
            job.granularity,
            cumulative=job.cumulative,
            progress_cb=progress_cb,
        )
        return aligned
