"""
The three result caches of the service, built once at startup and passed to whoever needs them.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config import Settings, settings as default_settings
from datasources.exceptions import UnknownCache
from engine.baseline.compute import BaselineResult
from store.cache import ResultCache

BASELINE = "baseline"
CHART_CONFIG = "chart_config"
METADATA = "metadata"


@dataclass
class CacheRegistry:
    baseline: ResultCache[BaselineResult]
    chart_config: ResultCache[Dict[str, Any]]
    metadata: ResultCache[Any]

    def all(self) -> Dict[str, ResultCache]:
        return {
            BASELINE: self.baseline,
            CHART_CONFIG: self.chart_config,
            METADATA: self.metadata,
        }

    def invalidate(self, name: Optional[str] = None) -> None:
        caches = self.all()
        if name is None:
            for cache in caches.values():
                cache.invalidate()
            return
        if name not in caches:
            raise UnknownCache(f"unknown cache {name!r}")
        caches[name].invalidate()

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: cache.get_stats() for name, cache in self.all().items()}


def build_caches(
    cfg: Optional[Settings] = None,
    clock: Callable[[], float] = time.monotonic,
) -> CacheRegistry:
    cfg = cfg or default_settings
    weight = cfg.cache_hit_weight_ms
    return CacheRegistry(
        baseline=ResultCache(BASELINE, cfg.baseline_cache_ttl, cfg.baseline_cache_size, clock, weight),
        chart_config=ResultCache(CHART_CONFIG, cfg.chart_config_cache_ttl, cfg.chart_config_cache_size, clock, weight),
        metadata=ResultCache(METADATA, cfg.metadata_cache_ttl, cfg.metadata_cache_size, clock, weight),
    )
