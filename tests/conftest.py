"""Shared fixtures: deterministic clock, manual timers, recorded sleeps."""

from __future__ import annotations

from collections.abc import Callable

import pytest


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTimer:
    """Stands in for ``threading.Timer``; tests call ``fire()`` explicitly."""

    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> list[FakeTimer]:
    return []


@pytest.fixture
def timer_factory(timers: list[FakeTimer]) -> Callable[[float, Callable[[], None]], FakeTimer]:
    def factory(interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        timers.append(timer)
        return timer

    return factory


@pytest.fixture
def sleeps() -> list[float]:
    return []
