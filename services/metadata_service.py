"""
Country reference metadata, memoized in the metadata result cache.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from store import keys
from store.cache import ResultCache

log = logging.getLogger(__name__)

MetadataLoader = Callable[[Optional[List[str]]], Awaitable[Dict[str, Any]]]


async def get_metadata(
    cache: ResultCache[Dict[str, Any]],
    loader: MetadataLoader,
    countries: Optional[List[str]] = None,
) -> Dict[str, Any]:
    fp = keys.metadata(countries)
    cached = cache.get(fp)
    if cached is not None:
        return cached
    data = await loader(countries)
    cache.set(fp, data)
    log.debug("metadata loaded for %s", "all countries" if not countries else ",".join(sorted(countries)))
    return data


def invalidate_metadata(cache: ResultCache[Dict[str, Any]], countries: Optional[List[str]] = None) -> bool:
    return cache.invalidate_key(keys.metadata(countries))
