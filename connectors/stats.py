# connectors/stats.py

import logging
import math
from typing import Any, Dict, Optional

import httpx

from config import STATS_NA
from datasources.base import BaselineConnector
from datasources.circuit_breaker import CircuitBreaker
from datasources.exceptions import (
    CircuitOpenError,
    InvalidStatsResponse,
    StatsServiceError,
    StatsServiceTimeout,
    StatsServiceUnavailable,
)
from datasources.retry import retry
from engine.baseline.compute import BaselineRequest, BaselineResult, REMOTE
from engine.model import Series

log = logging.getLogger(__name__)

HEALTH_PATH = "/"
CUMULATIVE_PATH = "/cum"


def _fmt(v: Any) -> str:
    if v is None or (isinstance(v, float) and math.isnan(v)):
        return STATS_NA
    f = float(v)
    return str(int(f)) if f.is_integer() else repr(f)


def _value(x: Any) -> Optional[float]:
    if x is None or x == STATS_NA:
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(f) else f


def _series(payload: Dict[str, Any], name: str, length: int, required: bool = True) -> Optional[Series]:
    raw = payload.get(name)
    if raw is None and not required:
        return None
    if not isinstance(raw, list):
        raise InvalidStatsResponse(f"stats response field {name!r} is not a list")
    out: Series = [_value(x) for x in raw[:length]]
    if len(out) < length:
        out.extend([None] * (length - len(out)))
    return out


def parse_baseline(payload: Any, length: int, cumulative: bool = False) -> BaselineResult:
    """Turn a regression service payload into series of exactly ``length`` points.

    The service may append forecast points beyond the input; those are dropped.
    """
    if not isinstance(payload, dict):
        raise InvalidStatsResponse("stats response is not an object")
    return BaselineResult(
        y=_series(payload, "y", length),
        lower=_series(payload, "lower", length),
        upper=_series(payload, "upper", length),
        zscore=_series(payload, "zscore", length, required=False),
        cumulative=cumulative,
        source=REMOTE,
    )


def build_params(request: BaselineRequest) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "y": ",".join(_fmt(v) for v in request.y),
        "bs": request.bs,
        "be": request.be,
        "t": request.t,
    }
    if not request.uses_cumulative_endpoint:
        params["s"] = request.s
        params["m"] = request.method
    if request.xs:
        params["xs"] = request.xs
    return params


class StatsConnector(BaselineConnector):
    health_path = HEALTH_PATH

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retries: int = 2,
        retry_delay: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(base_url, timeout=timeout, headers=headers)
        self.retries = max(0, int(retries))
        self.retry_delay = retry_delay
        self._transport = transport
        self.breaker = breaker if breaker is not None else CircuitBreaker("stats")

    def endpoint(self, request: BaselineRequest) -> str:
        if request.uses_cumulative_endpoint:
            return f"{self.base_url}{CUMULATIVE_PATH}"
        return f"{self.base_url}/"

    async def _get(self, url: str, params: Dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=params, headers=self._headers())
                resp.raise_for_status()
                try:
                    return resp.json()
                except ValueError as e:
                    raise InvalidStatsResponse(f"stats response is not JSON: {resp.text[:200]}") from e
        except httpx.HTTPStatusError as e:
            raise StatsServiceUnavailable(
                f"Stats service failed [{e.response.status_code}]: {e.response.text[:200]}"
            ) from e
        except httpx.TimeoutException as e:
            raise StatsServiceTimeout(f"Stats service timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise StatsServiceUnavailable(f"Cannot reach stats service at {url}") from e

    async def _guarded_get(self, url: str, params: Dict[str, Any]) -> Any:
        self.breaker.before_call()
        try:
            payload = await self._get(url, params)
        except StatsServiceError:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return payload

    async def fetch_baseline(self, request: BaselineRequest) -> BaselineResult:
        url = self.endpoint(request)
        call = retry(
            attempts=self.retries + 1,
            delay=self.retry_delay,
            backoff=1.0,
            exceptions=(StatsServiceUnavailable,),
            giveup=(StatsServiceTimeout, CircuitOpenError),
        )(self._guarded_get)
        payload = await call(url, build_params(request))
        log.debug("stats %s returned for %d points", url, len(request))
        return parse_baseline(payload, len(request), cumulative=request.uses_cumulative_endpoint)

    async def ping(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.health_url)
                return resp.status_code < 500
        except httpx.HTTPError as exc:
            log.debug("stats ping failed: %s", exc)
            return False

