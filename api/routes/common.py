"""
Shared dependencies for API route modules.

The baseline service and its caches are built once at startup by the
application lifespan and handed to the routers through this module.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import HTTPException

from api.requests import RawEntryModel
from engine.model import RawEntry
from services.baseline_service import BaselineService
from store.caches import CacheRegistry

_service: Optional[BaselineService] = None


def set_service(service: Optional[BaselineService]) -> None:
    global _service
    _service = service


def get_service() -> BaselineService:
    if _service is None:
        raise HTTPException(status_code=503, detail="baseline service not initialised")
    return _service


def get_caches() -> CacheRegistry:
    return get_service().caches


def to_raw(entries: list[RawEntryModel]) -> Dict[str, Dict[str, RawEntry]]:
    raw: Dict[str, Dict[str, RawEntry]] = {}
    for e in entries:
        raw.setdefault(e.age_group, {})[e.iso3c] = RawEntry(
            age_group=e.age_group,
            iso3c=e.iso3c,
            date=list(e.date),
            fields={k: list(v) for k, v in e.fields.items()},
        )
    return raw
