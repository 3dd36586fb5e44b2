"""Tests for bounded calls and fixed-backoff re-checks."""

from __future__ import annotations

import threading

import pytest

from bootmedic.core.errors import InconclusiveResult
from bootmedic.core.timeouts import bounded_call, recheck


class TestBoundedCall:
    def test_returns_value(self) -> None:
        assert bounded_call(lambda: 42, 1.0) == 42

    def test_timeout_is_inconclusive(self) -> None:
        release = threading.Event()
        with pytest.raises(InconclusiveResult, match="encryption status timed out"):
            bounded_call(lambda: release.wait(2), 0.01, label="encryption status")
        release.set()

    def test_exceptions_propagate(self) -> None:
        def boom() -> None:
            raise OSError("tool missing")

        with pytest.raises(OSError, match="tool missing"):
            bounded_call(boom, 1.0)


class TestRecheck:
    def test_first_attempt_accepted(self) -> None:
        sleeps: list[float] = []
        value, retried = recheck(lambda: 1, lambda v: v == 1, attempts=2, backoff_s=0.5, sleep=sleeps.append)
        assert (value, retried) == (1, False)
        assert sleeps == []

    def test_fixed_backoff_until_accepted(self) -> None:
        values = iter([0, 0, 1])
        sleeps: list[float] = []
        value, retried = recheck(lambda: next(values), bool, attempts=3, backoff_s=0.5, sleep=sleeps.append)
        assert value == 1
        assert retried
        assert sleeps == [0.5, 0.5]

    def test_gives_up_after_attempts(self) -> None:
        calls: list[int] = []

        def probe() -> int:
            calls.append(1)
            return 0

        value, retried = recheck(probe, bool, attempts=2, backoff_s=0, sleep=lambda _: None)
        assert value == 0
        assert retried
        assert len(calls) == 3

    def test_zero_attempts(self) -> None:
        value, retried = recheck(lambda: 0, bool, attempts=0, backoff_s=0)
        assert (value, retried) == (0, False)
