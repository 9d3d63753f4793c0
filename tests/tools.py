from __future__ import annotations

import time
from typing import Any

import pytest


class TimeTest:
    def __init__(self, expected_time: float, approx: float | None = None) -> None:
        assert expected_time > 0
        self.expected_time: float = expected_time
        self.approx: float | None = approx
        self.start_time: float = -1
        self._perf_counter = time.perf_counter

    def __enter__(self) -> TimeTest:
        if self.start_time >= 0:
            raise TypeError("Not reentrant context manager")
        self.start_time = self._perf_counter()
        return self

    def __exit__(self, exc_type: type[Exception] | None, exc_value: Exception | None, exc_tb: Any) -> None:
        end_time = self._perf_counter()
        if exc_type is not None:
            # If an exception occurred, we cannot say if this respects the execution timeout
            return
        assert self.start_time >= 0
        assert end_time - self.start_time == pytest.approx(self.expected_time, rel=self.approx)


class TimeLimit:
    """Asserts that the block runs in less than `max_time` seconds."""

    def __init__(self, max_time: float) -> None:
        assert max_time > 0
        self.max_time: float = max_time
        self.start_time: float = -1
        self.elapsed: float = -1

    def __enter__(self) -> TimeLimit:
        if self.start_time >= 0:
            raise TypeError("Not reentrant context manager")
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: type[Exception] | None, exc_value: Exception | None, exc_tb: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if exc_type is not None:
            return
        assert self.elapsed < self.max_time
