"""
Retry decorator for calls to the regression service.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Type, TypeVar, Tuple, cast

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


def retry(
    *,
    attempts: int = 3,
    delay: float = 0.5,
    backoff: float = 1.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    giveup: Tuple[Type[Exception], ...] = (),
) -> Callable[[F], F]:
    """Re-invoke ``func`` on ``exceptions`` up to ``attempts`` times in total.

    Exceptions listed in ``giveup`` are re-raised on first sight even when they
    also match ``exceptions``; timeouts belong there.  ``backoff=1.0`` keeps the
    delay fixed between attempts.
    """

    def decorator(func: F) -> F:
        is_async = inspect.iscoroutinefunction(func)

        if is_async:
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                _attempt = 0
                _delay = delay
                while True:
                    try:
                        return await func(*args, **kwargs)
                    except giveup:
                        raise
                    except exceptions as exc:
                        _attempt += 1
                        if _attempt >= attempts:
                            raise
                        log.debug("%s failed (attempt %d/%d): %s", func.__name__, _attempt, attempts, exc)
                        await asyncio.sleep(_delay)
                        _delay *= backoff

            return cast(F, async_wrapper)

        else:
            @wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                _attempt = 0
                _delay = delay
                while True:
                    try:
                        return func(*args, **kwargs)
                    except giveup:
                        raise
                    except exceptions as exc:
                        _attempt += 1
                        if _attempt >= attempts:
                            raise
                        log.debug("%s failed (attempt %d/%d): %s", func.__name__, _attempt, attempts, exc)
                        time.sleep(_delay)
                        _delay *= backoff

            return cast(F, sync_wrapper)

    return decorator
