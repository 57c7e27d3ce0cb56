"""
Period label helpers: seasonal alignment hints and tolerant label lookup.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from engine.enums import Granularity

_WEEK_RE = re.compile(r"^(\d{4})\s*W(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})\s+(\w{3})$")
_QUARTER_RE = re.compile(r"^(\d{4})\s*Q(\d)$")
_SEASON_RE = re.compile(r"^(\d{4})/\d{2}$")
_YEAR_RE = re.compile(r"^(\d{4})$")

_MONTHS: Dict[str, str] = {
    "Jan": "01", "Feb": "02", "Mar": "03", "Apr": "04",
    "May": "05", "Jun": "06", "Jul": "07", "Aug": "08",
    "Sep": "09", "Oct": "10", "Nov": "11", "Dec": "12",
}


def label_to_xs(label: str, granularity: Granularity) -> Optional[str]:
    """Calendar position of ``label`` in the format the regression service expects."""
    if not label:
        return None

    if granularity.is_weekly:
        m = _WEEK_RE.match(label)
        return f"{m.group(1)}W{m.group(2)}" if m else None

    if granularity is Granularity.monthly:
        m = _MONTH_RE.match(label)
        if m and m.group(2) in _MONTHS:
            return f"{m.group(1)}-{_MONTHS[m.group(2)]}"
        return None

    if granularity is Granularity.quarterly:
        m = _QUARTER_RE.match(label)
        return f"{m.group(1)}Q{m.group(2)}" if m else None

    if granularity.is_seasonal_year:
        m = _SEASON_RE.match(label)
        return m.group(1) if m else None

    m = _YEAR_RE.match(label)
    return m.group(1) if m else None


class PeriodIndex:
    """Label → position lookup over the canonical timeline."""

    def __init__(self, labels: Sequence[str]) -> None:
        if not labels:
            raise ValueError("PeriodIndex requires a non-empty label sequence")
        self._labels: List[str] = list(labels)
        self._positions: Dict[str, int] = {}
        for i, label in enumerate(self._labels):
            self._positions.setdefault(label, i)

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: str) -> bool:
        return label in self._positions

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def index_of(self, label: str) -> int:
        idx = self._positions.get(label)
        if idx is not None:
            return idx
        return self.closest_index(label)

    def closest_index(self, label: str) -> int:
        year = label[:4]
        for i, candidate in enumerate(self._labels):
            if candidate.startswith(year):
                return i

        try:
            target = int(year)
        except ValueError:
            return 0
        years = []
        for candidate in self._labels:
            try:
                years.append(int(candidate[:4]))
            except ValueError:
                continue
        if not years:
            return 0
        # ties resolve to the earlier year
        closest = min(dict.fromkeys(years), key=lambda y: abs(y - target))
        prefix = str(closest)
        for i, candidate in enumerate(self._labels):
            if candidate.startswith(prefix):
                return i
        return 0

    def is_valid_range(self, start: str, end: str) -> bool:
        return self.index_of(start) <= self.index_of(end)
