"""
Alignment of raw per-country observation arrays onto the canonical timeline.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from engine.model import AlignedData, Dataset, Entry, RawEntry, Series, is_missing

log = logging.getLogger(__name__)


def prefill(values: Sequence, n: int) -> list:
    return [None] * n + list(values)


def leading_unmatched(dates: Iterable[str], labels: Sequence[str]) -> int:
    """Number of timeline labels before the first one present in ``dates``."""
    present = set(dates)
    n = 0
    for label in labels:
        if label in present:
            break
        n += 1
    return n


def _fit(values: Sequence, length: int) -> list:
    out = list(values[:length])
    if len(out) < length:
        out.extend([None] * (length - len(out)))
    return out


def align_entry(raw: RawEntry, labels: Sequence[str]) -> Entry:
    n = len(labels)
    dates = list(raw.date)
    series: Dict[str, Series] = {}

    if len(dates) == n:
        shift = leading_unmatched(dates, labels)
        if shift == 0 or shift == n:
            for key, values in raw.fields.items():
                series[key] = _fit(values, n)
            return Entry(raw.age_group, raw.iso3c, series)

        log.debug("align %s/%s: legacy left-pad by %d", raw.age_group, raw.iso3c, shift)
        for key, values in raw.fields.items():
            series[key] = _fit(prefill(values, shift), n)
        return Entry(raw.age_group, raw.iso3c, series)

    lookup: Dict[str, int] = {}
    for i, d in enumerate(dates):
        lookup.setdefault(d, i)
    positions: List[Optional[int]] = [lookup.get(label) for label in labels]

    for key, values in raw.fields.items():
        series[key] = [
            values[p] if p is not None and p < len(values) else None
            for p in positions
        ]
    return Entry(raw.age_group, raw.iso3c, series)


def align_dataset(
    raw: Dict[str, Dict[str, RawEntry]],
    labels: Sequence[str],
    data_key: Optional[str] = None,
    age_groups: Optional[List[str]] = None,
    countries: Optional[List[str]] = None,
) -> AlignedData:
    """Align every (age group, country) unit; units without data land in ``no_data``."""
    ags = age_groups if age_groups is not None else list(raw)
    isos = countries if countries is not None else list(
        dict.fromkeys(iso for per_ag in raw.values() for iso in per_ag)
    )

    dataset = Dataset()
    no_data: Dict[str, Set[str]] = {}

    for ag in ags:
        for iso in isos:
            unit = raw.get(ag, {}).get(iso)
            if unit is None or not unit.date:
                no_data.setdefault(iso, set()).add(ag)
                continue
            entry = align_entry(unit, labels)
            if data_key is not None:
                observed = entry.get(data_key)
                if observed is None or all(is_missing(v) for v in observed):
                    no_data.setdefault(iso, set()).add(ag)
                    continue
            dataset.add(entry)

    if no_data:
        log.info("alignment: %d countries with missing age groups", len(no_data))
    return AlignedData(dataset=dataset, labels=list(labels), no_data=no_data)
