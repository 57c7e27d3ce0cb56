"""
Fingerprints for result cache entries.

A fingerprint is a structured tuple of typed fields reduced with SHA-256, so
no separator character can make two different parameter sets collide.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from engine.baseline.compute import BaselineRequest


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def _token(v: Any) -> str:
    if v is None:
        return "N"
    if isinstance(v, float) and math.isnan(v):
        return "NaN"
    return repr(float(v))


def series_digest(values: Iterable[Any]) -> str:
    """Order-sensitive digest of a numeric series; ``None`` and NaN stay distinct."""
    h = hashlib.sha256()
    n = 0
    for v in values:
        h.update(_token(v).encode())
        h.update(b"\x00")
        n += 1
    return f"{h.hexdigest()[:32]}:{n}"


def fingerprint(*parts: Any) -> str:
    return _digest(repr(tuple(parts)))


def baseline(request: BaselineRequest) -> str:
    return fingerprint(
        "baseline",
        series_digest(request.y),
        request.bs,
        request.be,
        request.s,
        request.t,
        request.method,
        bool(request.cumulative),
        request.xs,
    )


def chart_data_digest(data: Sequence[Dict[str, Any]]) -> str:
    """Sampled digest of chart datasets: size, first and last item, per-dataset lengths."""
    sample = {
        "length": len(data),
        "first": data[0] if data else None,
        "last": data[-1] if data else None,
        "dataset_lengths": [len(d["data"]) if isinstance(d.get("data"), list) else 0 for d in data],
    }
    return _digest(json.dumps(sample, sort_keys=True, default=str))[:32]


def chart_config(style: str, data: Sequence[Dict[str, Any]], **flags: Any) -> str:
    return fingerprint(
        "chart_config",
        style,
        chart_data_digest(data),
        tuple(sorted(flags.items())),
    )


def metadata(countries: Optional[List[str]] = None) -> str:
    scope = "all" if not countries else tuple(sorted(countries))
    return fingerprint("metadata", scope)
