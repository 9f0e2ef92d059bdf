"""Periodic trigger primitive backed by a daemon thread.

┌──────────────────────────────────────────────────────────────────────────────┐
│  PERIODIC TRIGGER                                                            │
│                                                                              │
│   arm(delay, period)                                                         │
│      │                                                                       │
│      ▼                                                                       │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │              Daemon Thread (loop)                       │                │
│   │                                                         │                │
│   │   wait on condition until next_fire (or closed)         │                │
│   │   callback()              ◄─────── runs inline          │                │
│   │   next_fire = next slot on the phase grid after now     │                │
│   │                                                         │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                              │
│   disarm()  → next_fire = None, thread parks on the condition                │
│   close()   → closed = True, notify, thread.join()                           │
└──────────────────────────────────────────────────────────────────────────────┘

Firing semantics:
    - First firing after ``delay``, then every ``period`` on a fixed phase
      grid (t0 + delay + k * period), so callback duration does not drift
      the schedule.
    - The callback runs on the trigger thread itself, so two firings never
      overlap.
    - Overrun policy is SKIP: firings whose slot passed while the callback
      was still running are dropped and counted in ``skipped_count``.
      Nothing is ever queued.
    - ``arm()`` while armed resets the phase. ``arm()`` after ``close()``
      raises TriggerClosedError.
    - An exception escaping the callback is handed to
      ``threading.excepthook`` and the thread keeps running.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable

from .errors import TriggerClosedError
from .logging import get_logger

logger = get_logger(__name__)

# Condition.wait rejects timeouts past threading.TIMEOUT_MAX; long waits are chunked.
_MAX_WAIT_SECONDS = 3600.0

__all__ = ["PeriodicTrigger"]


class PeriodicTrigger:
    """Fire a callback once after a delay, then at a fixed period, until disarmed.

    The worker thread is created lazily on the first ``arm()`` and lives
    until ``close()``; disarming only parks it.

    Example:
        >>> trigger = PeriodicTrigger(lambda: print("tick"), name="demo")
        >>> trigger.arm(delay=0.0, period=0.5)
        >>> # ... later ...
        >>> trigger.close()
        True
    """

    def __init__(self, callback: Callable[[], None], *, name: str = "ticktock-trigger") -> None:
        self._callback = callback
        self._name = name
        self._cond = threading.Condition(threading.Lock())
        self._thread: threading.Thread | None = None
        self._period: float | None = None
        self._next_fire: float | None = None
        self._generation = 0
        self._closed = False
        self._fire_count = 0
        self._skipped_count = 0

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def arm(self, delay: float, period: float) -> None:
        """Schedule the first firing after ``delay`` seconds, then every ``period``.

        Raises:
            ValueError: If delay is negative or period is not positive.
            TriggerClosedError: If the trigger has been closed.
        """
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay!r}")
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period!r}")

        with self._cond:
            if self._closed:
                raise TriggerClosedError()
            self._period = period
            self._next_fire = time.monotonic() + delay
            self._generation += 1
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._thread.start()
            self._cond.notify_all()

    def disarm(self) -> None:
        """Cancel pending firings. A callback already running is not interrupted."""
        with self._cond:
            if self._next_fire is None:
                return
            self._period = None
            self._next_fire = None
            self._generation += 1
            self._cond.notify_all()

    def close(self, timeout: float | None = None, *, wait: bool = True) -> bool:
        """Disarm permanently and release the worker thread.

        Every caller (not only the first) waits for the worker to exit when
        ``wait`` is true, unless it is the worker thread itself.

        Args:
            timeout: Maximum seconds to wait for an in-flight callback.
            wait: Join the worker thread before returning.

        Returns:
            True for the call that closed the trigger, False afterwards.
        """
        with self._cond:
            first = not self._closed
            self._closed = True
            self._period = None
            self._next_fire = None
            self._generation += 1
            thread = self._thread
            self._cond.notify_all()

        if wait and thread is not None and not self.in_trigger_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("trigger_thread_still_running", trigger=self._name, timeout=timeout)
        return first

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def armed(self) -> bool:
        with self._cond:
            return self._next_fire is not None

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def is_alive(self) -> bool:
        """Whether the worker thread exists and is running."""
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def fire_count(self) -> int:
        """Number of times the callback has been invoked."""
        with self._cond:
            return self._fire_count

    @property
    def skipped_count(self) -> int:
        """Number of firings dropped because the callback overran its slot."""
        with self._cond:
            return self._skipped_count

    def in_trigger_thread(self) -> bool:
        """True when called from the trigger's own worker thread."""
        return self._thread is not None and self._thread is threading.current_thread()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _wait_until_due(self) -> tuple[int, float] | None:
        """Block until a firing is due. Returns None once closed."""
        with self._cond:
            while True:
                if self._closed:
                    return None
                if self._next_fire is None:
                    self._cond.wait()
                    continue
                remaining = self._next_fire - time.monotonic()
                if remaining <= 0:
                    self._fire_count += 1
                    return self._generation, self._next_fire
                self._cond.wait(min(remaining, _MAX_WAIT_SECONDS))

    def _reschedule(self, generation: int, scheduled: float) -> None:
        with self._cond:
            # arm/disarm/close during the callback already decided what's next
            if self._closed or generation != self._generation or self._period is None:
                return
            period = self._period
            now = time.monotonic()
            next_fire = scheduled + period
            if next_fire <= now:
                missed = int((now - scheduled) // period)
                self._skipped_count += missed
                next_fire = scheduled + (missed + 1) * period
            self._next_fire = next_fire

    def _run(self) -> None:
        logger.debug("trigger_thread_started", trigger=self._name)
        while True:
            due = self._wait_until_due()
            if due is None:
                break
            generation, scheduled = due
            try:
                self._callback()
            except Exception:
                logger.error("trigger_callback_failed", trigger=self._name, exc_info=True)
                exc_type, exc_value, exc_tb = sys.exc_info()
                threading.excepthook(
                    threading.ExceptHookArgs([exc_type, exc_value, exc_tb, threading.current_thread()])
                )
                del exc_type, exc_value, exc_tb
            self._reschedule(generation, scheduled)
        logger.debug("trigger_thread_stopped", trigger=self._name)
