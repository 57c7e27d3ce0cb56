"""
Circuit breaker for calls to the regression service.

Closed passes calls through and counts failures inside a sliding window.
Reaching the failure threshold opens the circuit, and every call then fails
fast with :class:`CircuitOpenError` until ``reset_timeout`` seconds have passed
since the last failure.  The next call moves the breaker to half-open; a
failure there reopens it at once, while ``success_threshold`` successes close
it again.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, Optional

from config import settings
from datasources.exceptions import CircuitOpenError

log = logging.getLogger(__name__)


class CircuitState(str, Enum):
    closed = "closed"
    open = "open"
    half_open = "half_open"


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: Optional[int] = None,
        failure_window: Optional[float] = None,
        reset_timeout: Optional[float] = None,
        success_threshold: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = max(1, int(
            settings.stats_breaker_failure_threshold if failure_threshold is None else failure_threshold
        ))
        self.failure_window = float(
            settings.stats_breaker_failure_window if failure_window is None else failure_window
        )
        self.reset_timeout = float(
            settings.stats_breaker_reset_timeout if reset_timeout is None else reset_timeout
        )
        self.success_threshold = max(1, int(
            settings.stats_breaker_success_threshold if success_threshold is None else success_threshold
        ))
        self._clock = clock
        self.state = CircuitState.closed
        self._failures: Deque[float] = deque()
        self._successes = 0
        self._last_failure: Optional[float] = None

    def _prune(self, now: float) -> None:
        while self._failures and now - self._failures[0] > self.failure_window:
            self._failures.popleft()

    def _open(self, reason: str) -> None:
        self.state = CircuitState.open
        self._successes = 0
        log.warning("Circuit %s opened: %s", self.name, reason)

    def before_call(self) -> None:
        """Raise :class:`CircuitOpenError` while the circuit rejects calls."""
        if self.state is not CircuitState.open:
            return
        now = self._clock()
        if self._last_failure is not None and now - self._last_failure >= self.reset_timeout:
            self.state = CircuitState.half_open
            self._successes = 0
            log.info("Circuit %s half-open, letting a trial call through", self.name)
            return
        raise CircuitOpenError(f"circuit {self.name} is open, regression service considered down")

    def record_success(self) -> None:
        if self.state is not CircuitState.half_open:
            return
        self._successes += 1
        if self._successes >= self.success_threshold:
            self.state = CircuitState.closed
            self._failures.clear()
            self._successes = 0
            log.info("Circuit %s closed, service recovered", self.name)

    def record_failure(self) -> None:
        now = self._clock()
        self._last_failure = now
        self._successes = 0
        self._failures.append(now)
        self._prune(now)

        if self.state is CircuitState.half_open:
            self._open("trial call failed")
        elif self.state is CircuitState.closed and len(self._failures) >= self.failure_threshold:
            self._open(f"{len(self._failures)} failures within {self.failure_window:g}s")

    def status(self) -> Dict[str, Any]:
        now = self._clock()
        self._prune(now)
        return {
            "name": self.name,
            "state": self.state.value,
            "failures": len(self._failures),
            "successes": self._successes,
            "seconds_since_last_failure": (
                round(now - self._last_failure, 3) if self._last_failure is not None else None
            ),
        }
