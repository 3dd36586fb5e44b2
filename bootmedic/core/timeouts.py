"""Timeout-bounded queries and fixed-backoff re-checks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

from bootmedic.core.errors import InconclusiveResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def bounded_call(fn: Callable[[], T], timeout_s: float, *, label: str = "query") -> T:
    """Run *fn* on a worker thread and wait at most *timeout_s*.

    Raises InconclusiveResult on timeout. The worker is abandoned, not
    joined, so a hung tool cannot block the run.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bootmedic-bounded")
    future = pool.submit(fn)
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeoutError as exc:
        future.cancel()
        logger.warning("%s timed out after %.1fs", label, timeout_s)
        raise InconclusiveResult(f"{label} timed out after {timeout_s:g}s") from exc
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def recheck(
    fn: Callable[[], T],
    accept: Callable[[T], bool],
    *,
    attempts: int,
    backoff_s: float,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[T, bool]:
    """Call a read-only *fn* until *accept* holds or *attempts* re-checks run out.

    Only for idempotent inspections. Returns the last value and whether it
    came from a re-check rather than the first attempt.
    """
    value = fn()
    if accept(value):
        return value, False
    for attempt in range(1, attempts + 1):
        sleep(backoff_s)
        value = fn()
        logger.debug("re-check %d/%d accepted=%s", attempt, attempts, accept(value))
        if accept(value):
            return value, True
    return value, attempts > 0
