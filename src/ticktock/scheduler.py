"""Periodic callback scheduler with error-policy containment.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TICK SCHEDULER                                                              │
│                                                                              │
│   start() ──► PeriodicTrigger.arm(0, interval)                               │
│                    │                                                         │
│                    ▼  (trigger thread, one cycle at a time)                  │
│   ┌───────────────────────────────────────────────────────────────┐          │
│   │  for handler in tick handlers (registration order):           │          │
│   │      handler()                                                │          │
│   │      on Exception → policy                                    │          │
│   │          IGNORE            → next handler                     │          │
│   │          LOG_AND_CONTINUE  → error handlers(exc), next        │          │
│   │          STOP              → error handlers(exc), halt, break │          │
│   │          <anything else>   → PolicyConfigError, cycle aborts  │          │
│   └───────────────────────────────────────────────────────────────┘          │
│                                                                              │
│   State machine:                                                             │
│                                                                              │
│     CREATED ──start──► RUNNING ──stop / policy STOP──► STOPPED               │
│                          ▲ │ start (re-arm)               │                  │
│                          │ └──────┘                       │                  │
│                          └──────────────start─────────────┘                  │
│     {CREATED, RUNNING, STOPPED} ──dispose──► DISPOSED (terminal)             │
└──────────────────────────────────────────────────────────────────────────────┘

Disposed instances fail fast: start(), stop() and set_policy() raise
SchedulerDisposedError. dispose() itself is idempotent.

Exceptions raised by error handlers are not contained. They abort the
current cycle and reach ``threading.excepthook`` via the trigger thread,
which keeps firing afterwards. The same applies to a policy value that
is not an ErrorHandlingPolicy member.

Example:
    >>> scheduler = TickScheduler(0.5, policy=ErrorHandlingPolicy.LOG_AND_CONTINUE)
    >>> @scheduler.on_tick
    ... def poll():
    ...     refresh_cache()
    >>> scheduler.on_error(lambda exc: print(f"tick failed: {exc}"))
    >>> with scheduler:
    ...     scheduler.start()
    ...     time.sleep(5)
"""

from __future__ import annotations

import math
import threading
import weakref
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from .channel import CallbackChannel
from .enums import ErrorHandlingPolicy, SchedulerState
from .errors import InvalidIntervalError, PolicyConfigError, SchedulerDisposedError
from .health import SchedulerHealth
from .logging import get_logger
from .trigger import PeriodicTrigger

if TYPE_CHECKING:
    from .settings import TickTockSettings

logger = get_logger(__name__)

TickHandler = Callable[[], Any]
ErrorHandler = Callable[[Exception], Any]

__all__ = ["TickScheduler", "TickHandler", "ErrorHandler"]


def _coerce_interval(value: Any) -> float:
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidIntervalError(value)
    else:
        seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        raise InvalidIntervalError(value)
    return seconds


def _coerce_policy(value: Any) -> ErrorHandlingPolicy:
    """Accept a member, its value ("log_and_continue") or its name ("LOG_AND_CONTINUE")."""
    if isinstance(value, ErrorHandlingPolicy):
        return value
    if isinstance(value, str):
        key = value.strip()
        try:
            return ErrorHandlingPolicy(key.lower())
        except ValueError:
            pass
        try:
            return ErrorHandlingPolicy[key.upper()]
        except KeyError:
            pass
    raise PolicyConfigError(value)


def _weak_tick(scheduler: TickScheduler) -> Callable[[], None]:
    # The trigger thread must not keep the scheduler alive, otherwise the
    # finalizer below could never run.
    ref = weakref.WeakMethod(scheduler._run_tick_cycle)

    def fire() -> None:
        cycle = ref()
        if cycle is not None:
            cycle()

    return fire


class TickScheduler:
    """Invoke registered handlers at a fixed interval on a background thread.

    Args:
        interval: Seconds between ticks (int/float) or a timedelta. Must be > 0.
        policy: Response to a failing tick handler.
        name: Label for the trigger thread and log records.
        dispose_timeout: Bound on how long dispose() waits for an in-flight
            tick. None waits until it completes.

    Raises:
        InvalidIntervalError: If interval is not a positive duration.
        PolicyConfigError: If policy is not recognized.
    """

    def __init__(
        self,
        interval: float | timedelta,
        *,
        policy: ErrorHandlingPolicy | str = ErrorHandlingPolicy.IGNORE,
        name: str = "ticktock",
        dispose_timeout: float | None = None,
    ) -> None:
        self._interval = _coerce_interval(interval)
        self._policy = _coerce_policy(policy)
        self._name = name
        self._dispose_timeout = dispose_timeout

        self._lock = threading.RLock()
        self._state = SchedulerState.CREATED
        self._tick_handlers: CallbackChannel[TickHandler] = CallbackChannel("tick")
        self._error_handlers: CallbackChannel[ErrorHandler] = CallbackChannel("error")

        self._tick_count = 0
        self._failure_count = 0
        self._last_tick: datetime | None = None
        self._last_error: Exception | None = None

        self._trigger = PeriodicTrigger(_weak_tick(self), name=f"{name}-trigger")
        self._finalizer = weakref.finalize(self, self._trigger.close, wait=False)

    @classmethod
    def from_settings(cls, settings: TickTockSettings) -> TickScheduler:
        """Build a scheduler from loaded settings."""
        return cls(
            settings.interval_seconds,
            policy=settings.policy,
            name=settings.name,
            dispose_timeout=settings.dispose_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> timedelta:
        return timedelta(seconds=self._interval)

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def is_disposed(self) -> bool:
        return self.state is SchedulerState.DISPOSED

    @property
    def policy(self) -> ErrorHandlingPolicy:
        with self._lock:
            return self._policy

    @policy.setter
    def policy(self, value: ErrorHandlingPolicy | str) -> None:
        self.set_policy(value)

    @property
    def tick_count(self) -> int:
        """Number of tick cycles started."""
        with self._lock:
            return self._tick_count

    @property
    def failure_count(self) -> int:
        """Number of tick handler failures captured, under any policy."""
        with self._lock:
            return self._failure_count

    @property
    def last_tick(self) -> datetime | None:
        with self._lock:
            return self._last_tick

    @property
    def last_error(self) -> Exception | None:
        with self._lock:
            return self._last_error

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on_tick(self, handler: TickHandler) -> TickHandler:
        """Register a tick handler (called with no arguments). Usable as a decorator."""
        return self._tick_handlers.subscribe(handler)

    def remove_tick_handler(self, handler: TickHandler) -> bool:
        return self._tick_handlers.unsubscribe(handler)

    def on_error(self, handler: ErrorHandler) -> ErrorHandler:
        """Register an error handler (called with the captured exception)."""
        return self._error_handlers.subscribe(handler)

    def remove_error_handler(self, handler: ErrorHandler) -> bool:
        return self._error_handlers.unsubscribe(handler)

    @property
    def tick_handlers(self) -> tuple[TickHandler, ...]:
        return self._tick_handlers.snapshot()

    @property
    def error_handlers(self) -> tuple[ErrorHandler, ...]:
        return self._error_handlers.snapshot()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Fire immediately, then every interval. Re-arms (resets phase) if running.

        Raises:
            SchedulerDisposedError: If the scheduler has been disposed.
        """
        with self._lock:
            self._ensure_not_disposed("start")
            previous = self._state
            policy = self._policy
            self._trigger.arm(0.0, self._interval)
            self._state = SchedulerState.RUNNING

        if previous is SchedulerState.RUNNING:
            logger.debug("scheduler_rearmed", scheduler=self._name)
        else:
            logger.info(
                "scheduler_started",
                scheduler=self._name,
                interval_seconds=self._interval,
                policy=getattr(policy, "value", policy),
            )

    def stop(self) -> None:
        """Disarm the trigger. No-op unless running.

        A tick already in progress runs to completion.

        Raises:
            SchedulerDisposedError: If the scheduler has been disposed.
        """
        with self._lock:
            self._ensure_not_disposed("stop")
            if self._state is not SchedulerState.RUNNING:
                return
            self._trigger.disarm()
            self._state = SchedulerState.STOPPED
        logger.info("scheduler_stopped", scheduler=self._name, tick_count=self._tick_count)

    def dispose(self) -> bool:
        """Permanently stop and release the trigger thread.

        Blocks until any in-flight tick has finished (bounded by
        ``dispose_timeout``), except when called from a tick handler, in
        which case the remaining handlers of that cycle are skipped.

        Returns:
            True for the call that performed the release, False afterwards.
        """
        with self._lock:
            first = self._state is not SchedulerState.DISPOSED
            self._state = SchedulerState.DISPOSED

        if first:
            self._finalizer.detach()
        self._trigger.close(timeout=self._dispose_timeout)

        if first:
            logger.info(
                "scheduler_disposed",
                scheduler=self._name,
                tick_count=self._tick_count,
                failure_count=self._failure_count,
            )
        return first

    close = dispose

    def set_policy(self, policy: ErrorHandlingPolicy | str) -> None:
        """Change the error-handling policy; applies from the next failure on.

        Raises:
            PolicyConfigError: If the policy is not recognized.
            SchedulerDisposedError: If the scheduler has been disposed.
        """
        resolved = _coerce_policy(policy)
        with self._lock:
            self._ensure_not_disposed("set policy")
            self._policy = resolved
        logger.debug("policy_changed", scheduler=self._name, policy=resolved.value)

    def __enter__(self) -> TickScheduler:
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def get_health(self) -> SchedulerHealth:
        """Return structured health status."""
        with self._lock:
            return SchedulerHealth(
                healthy=self._state is SchedulerState.RUNNING and self._trigger.is_alive,
                name=self._name,
                state=self._state,
                policy=self._policy,
                interval_seconds=self._interval,
                tick_count=self._tick_count,
                failure_count=self._failure_count,
                skipped_count=self._trigger.skipped_count,
                last_tick=self._last_tick,
                last_error=repr(self._last_error) if self._last_error is not None else None,
            )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def __repr__(self) -> str:
        return (
            f"TickScheduler(name={self._name!r}, interval={self._interval}s, "
            f"state={self.state.value}, policy={self.policy.value})"
        )

    # ------------------------------------------------------------------
    # Tick cycle (trigger thread)
    # ------------------------------------------------------------------

    def _ensure_not_disposed(self, operation: str) -> None:
        if self._state.is_terminal:
            raise SchedulerDisposedError(operation).with_context(
                scheduler=self._name, state=self._state.value
            )

    def _run_tick_cycle(self) -> None:
        with self._lock:
            if self._state is not SchedulerState.RUNNING:
                return
            self._tick_count += 1
            tick_number = self._tick_count
            self._last_tick = datetime.now(UTC)
        handlers = self._tick_handlers.snapshot()

        for handler in handlers:
            if self.is_disposed:
                logger.debug("tick_cycle_abandoned", scheduler=self._name, tick_number=tick_number)
                return
            try:
                handler()
            except Exception as exc:
                if not self._handle_failure(exc, tick_number):
                    return

    def _handle_failure(self, exc: Exception, tick_number: int) -> bool:
        """Apply the active policy to a handler failure.

        Returns:
            False when the rest of the cycle must be skipped.
        """
        with self._lock:
            self._failure_count += 1
            self._last_error = exc
            policy = self._policy

        fields = {
            "scheduler": self._name,
            "tick_number": tick_number,
            "error_type": type(exc).__name__,
            "error": str(exc),
        }

        if policy is ErrorHandlingPolicy.IGNORE:
            logger.debug("tick_failure_ignored", **fields)
            return True

        if policy is ErrorHandlingPolicy.LOG_AND_CONTINUE:
            logger.warning("tick_failed", **fields)
            self._notify_error(exc)
            return True

        if policy is ErrorHandlingPolicy.STOP:
            logger.error("tick_failed_stopping", **fields)
            self._notify_error(exc)
            self._halt()
            return False

        raise PolicyConfigError(policy).with_context(
            scheduler=self._name, tick_number=tick_number
        ) from exc

    def _notify_error(self, exc: Exception) -> None:
        for handler in self._error_handlers.snapshot():
            handler(exc)

    def _halt(self) -> None:
        """Policy-driven RUNNING → STOPPED; no-op if already stopped or disposed."""
        with self._lock:
            if self._state is not SchedulerState.RUNNING:
                return
            self._trigger.disarm()
            self._state = SchedulerState.STOPPED
        logger.info("scheduler_halted_by_policy", scheduler=self._name, tick_count=self._tick_count)
