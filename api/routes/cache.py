"""
Cache monitoring routes: statistics and invalidation for the result caches.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter

from api.responses import CacheStats
from api.routes.common import get_caches
from api.routes.exception import handle_exceptions

router = APIRouter(prefix="/admin", tags=["Cache"])


@router.get("/cache", response_model=Dict[str, CacheStats])
@handle_exceptions
async def cache_stats() -> Dict[str, CacheStats]:
    return {name: CacheStats(**stats) for name, stats in get_caches().stats().items()}


@router.delete("/cache")
@handle_exceptions
async def clear_cache(name: Optional[str] = None) -> Dict[str, object]:
    caches = get_caches()
    caches.invalidate(name)
    return {"cleared": [name] if name else sorted(caches.all())}
