"""
Enumerations for chart granularities and baseline estimation methods.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import PERIODS_PER_YEAR


class Granularity(str, Enum):
    weekly = "weekly"
    weekly_13w_sma = "weekly_13w_sma"
    weekly_26w_sma = "weekly_26w_sma"
    weekly_52w_sma = "weekly_52w_sma"
    weekly_104w_sma = "weekly_104w_sma"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    fluseason = "fluseason"
    midyear = "midyear"

    @property
    def is_weekly(self) -> bool:
        return self.value.startswith("weekly")

    @property
    def is_seasonal_year(self) -> bool:
        # flu seasons and mid-year periods straddle two calendar years
        return self in (Granularity.fluseason, Granularity.midyear)

    def season_type(self) -> int:
        if self.is_weekly:
            return 4
        if self is Granularity.monthly:
            return 3
        if self is Granularity.quarterly:
            return 2
        return 1

    def periods_per_year(self) -> int:
        return PERIODS_PER_YEAR[self.value]

    def cap_family(self) -> str:
        """Key into the per-granularity baseline length caps."""
        if self.is_weekly:
            return "weekly"
        if self in (Granularity.monthly, Granularity.quarterly):
            return self.value
        return "yearly"


class BaselineMethod(str, Enum):
    naive = "naive"
    mean = "mean"
    median = "median"
    lin_reg = "lin_reg"
    exp = "exp"
    auto = "auto"

    @property
    def uses_trend(self) -> bool:
        return self is BaselineMethod.lin_reg
