"""
Constants and configuration for the mortality baseline engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict

from pydantic_settings import BaseSettings


MORTWATCH_STATS_URL: str = os.getenv("MORTWATCH_STATS_URL", "https://stats.mortality.watch/")
MORTWATCH_STATS_TIMEOUT: float = float(os.getenv("MORTWATCH_STATS_TIMEOUT", "10"))
MORTWATCH_STATS_RETRIES: int = int(os.getenv("MORTWATCH_STATS_RETRIES", "2"))
MORTWATCH_STATS_RETRY_DELAY: float = float(os.getenv("MORTWATCH_STATS_RETRY_DELAY", "0.5"))
MORTWATCH_BASELINE_MAX_CONCURRENCY: int = int(os.getenv("MORTWATCH_BASELINE_MAX_CONCURRENCY", "8"))

# circuit breaker around the regression service
STATS_BREAKER_FAILURE_THRESHOLD: int = int(os.getenv("STATS_BREAKER_FAILURE_THRESHOLD", "3"))
STATS_BREAKER_FAILURE_WINDOW: float = float(os.getenv("STATS_BREAKER_FAILURE_WINDOW", "30"))
STATS_BREAKER_RESET_TIMEOUT: float = float(os.getenv("STATS_BREAKER_RESET_TIMEOUT", "60"))
STATS_BREAKER_SUCCESS_THRESHOLD: int = int(os.getenv("STATS_BREAKER_SUCCESS_THRESHOLD", "2"))

# cache lifetimes in seconds
BASELINE_CACHE_TTL: float = float(os.getenv("BASELINE_CACHE_TTL", str(15 * 60)))
CHART_CONFIG_CACHE_TTL: float = float(os.getenv("CHART_CONFIG_CACHE_TTL", str(5 * 60)))
METADATA_CACHE_TTL: float = float(os.getenv("METADATA_CACHE_TTL", str(24 * 60 * 60)))

BASELINE_CACHE_SIZE: int = int(os.getenv("BASELINE_CACHE_SIZE", "100"))
CHART_CONFIG_CACHE_SIZE: int = int(os.getenv("CHART_CONFIG_CACHE_SIZE", "100"))
METADATA_CACHE_SIZE: int = int(os.getenv("METADATA_CACHE_SIZE", "50"))

# sentinel the regression service uses for values it could not compute
STATS_NA = "NA"

# baseline range defaults
DEFAULT_BASELINE_YEAR = 2017
DEFAULT_SEASONAL_BASELINE_YEAR = 2016
MIN_BASELINE_SPAN = 3

# number of periods per calendar year for each chart granularity
PERIODS_PER_YEAR: Dict[str, int] = {
    "weekly": 52,
    "weekly_13w_sma": 52,
    "weekly_26w_sma": 52,
    "weekly_52w_sma": 52,
    "weekly_104w_sma": 52,
    "monthly": 12,
    "quarterly": 4,
    "yearly": 1,
    "fluseason": 1,
    "midyear": 1,
}

# upper bound on the baseline window length, in years, before the remote
# regression is skipped in favour of the local mean fallback
MAX_BASELINE_YEARS: Dict[str, int] = {
    "weekly": 10,
    "monthly": 20,
    "quarterly": 25,
    "yearly": 50,
}


class Settings(BaseSettings):
    stats_url: str = MORTWATCH_STATS_URL
    stats_timeout: float = MORTWATCH_STATS_TIMEOUT
    stats_retries: int = MORTWATCH_STATS_RETRIES
    stats_retry_delay: float = MORTWATCH_STATS_RETRY_DELAY
    stats_breaker_failure_threshold: int = STATS_BREAKER_FAILURE_THRESHOLD
    # seconds
    stats_breaker_failure_window: float = STATS_BREAKER_FAILURE_WINDOW
    stats_breaker_reset_timeout: float = STATS_BREAKER_RESET_TIMEOUT
    stats_breaker_success_threshold: int = STATS_BREAKER_SUCCESS_THRESHOLD

    # bounded fan-out for the per-entry baseline calls
    baseline_max_concurrency: int = MORTWATCH_BASELINE_MAX_CONCURRENCY

    # baseline computation defaults
    baseline_data_precision: int = 4
    baseline_min_valid_points: int = 3
    baseline_fallback_sigma: float = 2.0
    max_baseline_years: Dict[str, int] = MAX_BASELINE_YEARS

    # result caches
    baseline_cache_ttl: float = BASELINE_CACHE_TTL
    baseline_cache_size: int = BASELINE_CACHE_SIZE
    chart_config_cache_ttl: float = CHART_CONFIG_CACHE_TTL
    chart_config_cache_size: int = CHART_CONFIG_CACHE_SIZE
    metadata_cache_ttl: float = METADATA_CACHE_TTL
    metadata_cache_size: int = METADATA_CACHE_SIZE
    # weight of one hit against one millisecond of age in the eviction score
    cache_hit_weight_ms: float = 1000.0

    default_baseline_year: int = DEFAULT_BASELINE_YEAR
    default_seasonal_baseline_year: int = DEFAULT_SEASONAL_BASELINE_YEAR
    min_baseline_span: int = MIN_BASELINE_SPAN

    model_config = {
        "env_prefix": "MORTWATCH_",
        "extra": "ignore",
    }


settings = Settings()
