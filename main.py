"""
Entry point for the mortality baseline API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from api.routes import router
from api.routes.common import set_service
from config import settings
from services.baseline_service import BaselineService
from store.caches import build_caches

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    caches = build_caches(settings)
    set_service(BaselineService.from_settings(settings, caches))
    log.info(
        "Baseline service ready (stats=%s, concurrency=%d, caches=%s)",
        settings.stats_url, settings.baseline_max_concurrency, ",".join(sorted(caches.all())),
    )
    try:
        yield
    finally:
        caches.invalidate()
        set_service(None)


app = FastAPI(
    title="Mortality Baselines",
    description="Expected mortality baselines, prediction intervals and excess deaths per country and age group.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=4322,
        log_level="info",
        access_log=True,
    )
