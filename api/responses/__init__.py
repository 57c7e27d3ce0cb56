"""
Response models for API endpoints.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_serializer

from engine.model import AlignedData, Entry


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce(v) for v in obj]
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    return obj


class JsonSafeModel(BaseModel):

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class EntryModel(JsonSafeModel):
    age_group: str
    iso3c: str
    series: Dict[str, List[Optional[float]]]

    @classmethod
    def from_entry(cls, entry: Entry) -> EntryModel:
        return cls(age_group=entry.age_group, iso3c=entry.iso3c, series=dict(entry.series))


class BaselinesResponse(JsonSafeModel):
    labels: List[str]
    entries: List[EntryModel]
    no_data: Dict[str, List[str]] = Field(default_factory=dict)

    @classmethod
    def from_aligned(cls, aligned: AlignedData) -> BaselinesResponse:
        return cls(
            labels=aligned.labels,
            entries=[EntryModel.from_entry(e) for e in aligned.dataset],
            no_data={iso: sorted(ags) for iso, ags in aligned.no_data.items()},
        )


class CacheEntryStats(BaseModel):
    key: str
    age_seconds: float
    hits: int


class CacheStats(BaseModel):
    name: str
    size: int
    capacity: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    hit_rate: float
    entries: List[CacheEntryStats] = Field(default_factory=list)
