"""
Health check route reporting regression service reachability, circuit state and cache sizes.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from api.routes.common import get_service
from api.routes.exception import handle_exceptions
from datasources.circuit_breaker import CircuitState

router = APIRouter(tags=["Health"])


@router.get("/health")
@handle_exceptions
async def health() -> Dict[str, Any]:
    service = get_service()
    connector = service.orchestrator.estimator.connector
    reachable = await connector.ping()
    body: Dict[str, Any] = {
        "status": "ok" if reachable else "degraded",
        "stats_url": connector.base_url,
        "caches": {name: len(cache) for name, cache in service.caches.all().items()},
    }
    breaker = getattr(connector, "breaker", None)
    if breaker is not None:
        circuit = breaker.status()
        body["circuit"] = circuit
        if circuit["state"] != CircuitState.closed.value:
            body["status"] = "degraded"
    return body
