"""
Core data structures shared by the alignment, baseline and excess stages.

An :class:`Entry` is one (age group, country) unit holding every named series
for that unit.  A :class:`Dataset` is an arena of entry slots: concurrent
baseline tasks each own a single slot index and only ever replace that slot.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Set, Tuple

Value = Optional[float]
Series = List[Value]


def is_missing(v: Value) -> bool:
    return v is None or (isinstance(v, float) and math.isnan(v))


def valid_values(values: Series) -> List[float]:
    return [float(v) for v in values if not is_missing(v)]


@dataclass(frozen=True)
class SeriesKeys:
    """Field names for one observed metric and everything derived from it."""

    observed: str
    baseline: str
    lower: str
    upper: str

    @classmethod
    def for_metric(cls, key: str) -> SeriesKeys:
        return cls(
            observed=key,
            baseline=f"{key}_baseline",
            lower=f"{key}_baseline_lower",
            upper=f"{key}_baseline_upper",
        )

    @property
    def zscore(self) -> str:
        return f"{self.observed}_zscore"

    @property
    def excess(self) -> str:
        return f"{self.observed}_excess"

    @property
    def excess_lower(self) -> str:
        return f"{self.observed}_excess_lower"

    @property
    def excess_upper(self) -> str:
        return f"{self.observed}_excess_upper"


@dataclass(frozen=True)
class Entry:
    age_group: str
    iso3c: str
    series: Dict[str, Series] = field(default_factory=dict)

    def get(self, key: str) -> Optional[Series]:
        return self.series.get(key)

    def with_series(self, **updates: Series) -> Entry:
        merged = dict(self.series)
        merged.update(updates)
        return replace(self, series=merged)


@dataclass
class RawEntry:
    """Observations for one unit as loaded, keyed by their native dates."""

    age_group: str
    iso3c: str
    date: List[str]
    fields: Dict[str, Series] = field(default_factory=dict)


class Dataset:
    def __init__(self, entries: Optional[List[Entry]] = None) -> None:
        self._slots: List[Entry] = []
        self._index: Dict[Tuple[str, str], int] = {}
        for e in entries or []:
            self.add(e)

    def add(self, entry: Entry) -> int:
        key = (entry.age_group, entry.iso3c)
        if key in self._index:
            raise ValueError(f"duplicate entry {key}")
        self._slots.append(entry)
        self._index[key] = len(self._slots) - 1
        return self._index[key]

    def replace(self, slot: int, entry: Entry) -> None:
        current = self._slots[slot]
        if (current.age_group, current.iso3c) != (entry.age_group, entry.iso3c):
            raise ValueError(f"slot {slot} belongs to {current.age_group}/{current.iso3c}")
        self._slots[slot] = entry

    def slot_of(self, age_group: str, iso3c: str) -> int:
        return self._index[(age_group, iso3c)]

    def get(self, age_group: str, iso3c: str) -> Entry:
        return self._slots[self.slot_of(age_group, iso3c)]

    def slots(self) -> Iterator[Tuple[int, Entry]]:
        return iter(list(enumerate(self._slots)))

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._slots))

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._index


@dataclass
class AlignedData:
    dataset: Dataset
    labels: List[str]
    no_data: Dict[str, Set[str]] = field(default_factory=dict)
