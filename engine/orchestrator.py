"""
Concurrent fan-out of baseline estimation over every (age group, country) entry.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from config import settings
from engine.baseline.estimator import BaselineEstimator
from engine.enums import BaselineMethod, Granularity
from engine.model import Dataset, Entry, SeriesKeys

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class BaselineOrchestrator:
    def __init__(self, estimator: BaselineEstimator, max_concurrency: Optional[int] = None) -> None:
        self.estimator = estimator
        limit = settings.baseline_max_concurrency if max_concurrency is None else max_concurrency
        self.max_concurrency = max(1, int(limit))

    async def run(
        self,
        dataset: Dataset,
        labels: Sequence[str],
        start: int,
        end: int,
        series_keys: SeriesKeys,
        method: BaselineMethod | str,
        granularity: Granularity | str,
        cumulative: bool = False,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> Dataset:
        """Estimate every entry in place and return ``dataset``.

        Each task owns one slot of the dataset and replaces only that slot once
        its baseline and excess are done.  An entry whose estimation raises keeps
        its original series; the rest of the batch carries on.
        ``progress_cb`` sees ``(0, total)`` first and then ``(completed, total)``
        after every entry.
        """
        total = len(dataset)
        sem = asyncio.Semaphore(self.max_concurrency)
        completed = 0

        async def _one(slot: int, entry: Entry) -> None:
            nonlocal completed
            async with sem:
                try:
                    updated = await self.estimator.estimate(
                        entry, labels, start, end, series_keys, method, granularity, cumulative,
                    )
                except Exception as exc:
                    log.exception("Baseline estimation failed for %s/%s: %s", entry.age_group, entry.iso3c, exc)
                    updated = entry
            dataset.replace(slot, updated)
            completed += 1
            if progress_cb is not None:
                progress_cb(completed, total)

        if progress_cb is not None:
            progress_cb(0, total)
        log.debug(
            "baselines: %d entries window=[%d,%d] method=%s concurrency=%d",
            total, start, end, method, self.max_concurrency,
        )
        await asyncio.gather(*[_one(slot, entry) for slot, entry in dataset.slots()])
        return dataset
