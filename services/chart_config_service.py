"""
Memoization of derived chart configuration.

Building the configuration itself belongs to the visualization layer; this
module only keys and caches what the injected builder returns.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List

from store import keys
from store.cache import ResultCache

ChartConfig = Dict[str, Any]


def get_chart_config(
    cache: ResultCache[ChartConfig],
    builder: Callable[[], ChartConfig],
    style: str,
    data: List[Dict[str, Any]],
    **flags: Any,
) -> ChartConfig:
    return cache.get_or_compute(keys.chart_config(style, data, **flags), builder)
