"""
Shared pytest fixtures for ticktock tests.

This module provides:
- A scheduler factory that always disposes what it creates
- A polling helper for assertions on background-thread effects
- Capture of ``threading.excepthook`` deliveries
- Settings/logging reset for test isolation
"""

import sys
import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure ticktock package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ticktock import TickScheduler
from ticktock.settings import clear_settings_cache


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_global_state() -> Generator[None, None, None]:
    """Reset cached settings and structlog configuration around every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()


# =============================================================================
# Scheduler Fixtures
# =============================================================================


@pytest.fixture
def make_scheduler() -> Generator[Callable[..., TickScheduler], None, None]:
    """
    Factory for schedulers that are disposed at teardown.

    Usage:
        def test_something(make_scheduler):
            scheduler = make_scheduler(0.05, policy="stop")
    """
    created: list[TickScheduler] = []

    def factory(interval: Any = 0.05, **kwargs: Any) -> TickScheduler:
        scheduler = TickScheduler(interval, **kwargs)
        created.append(scheduler)
        return scheduler

    yield factory

    for scheduler in created:
        scheduler.dispose()


@pytest.fixture
def excepthook_calls(monkeypatch: pytest.MonkeyPatch) -> list[threading.ExceptHookArgs]:
    """Record exceptions delivered to threading.excepthook instead of printing them."""
    calls: list[threading.ExceptHookArgs] = []
    monkeypatch.setattr(threading, "excepthook", calls.append)
    return calls


# =============================================================================
# Helpers
# =============================================================================


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll ``predicate`` until it returns True or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class Recorder:
    """Thread-safe call recorder usable as a tick or error handler."""

    def __init__(self, fail_on: Callable[[int], bool] | None = None) -> None:
        self.calls: list[Any] = []
        self.times: list[float] = []
        self._fail_on = fail_on
        self._lock = threading.Lock()

    def __call__(self, *args: Any) -> None:
        with self._lock:
            self.calls.append(args[0] if args else None)
            self.times.append(time.monotonic())
            count = len(self.calls)
        if self._fail_on is not None and self._fail_on(count):
            raise RuntimeError(f"failure on call {count}")

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.calls)
