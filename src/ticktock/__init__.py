"""
ticktock - periodic callback scheduler with error-policy containment.

Usage:
    from ticktock import ErrorHandlingPolicy, TickScheduler

    scheduler = TickScheduler(1.0, policy=ErrorHandlingPolicy.LOG_AND_CONTINUE)
    scheduler.on_tick(poll_upstream)
    scheduler.on_error(lambda exc: alert(exc))

    with scheduler:
        scheduler.start()
        ...
"""

from ticktock.channel import CallbackChannel
from ticktock.enums import ErrorHandlingPolicy, SchedulerState
from ticktock.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidIntervalError,
    LifecycleError,
    PolicyConfigError,
    SchedulerDisposedError,
    TickTockError,
    TriggerClosedError,
)
from ticktock.health import SchedulerHealth
from ticktock.scheduler import TickScheduler
from ticktock.trigger import PeriodicTrigger

__version__ = "0.1.0"

__all__ = [
    # Core
    "TickScheduler",
    "ErrorHandlingPolicy",
    "SchedulerState",
    "SchedulerHealth",
    # Building blocks
    "CallbackChannel",
    "PeriodicTrigger",
    # Errors
    "TickTockError",
    "ErrorCategory",
    "ErrorContext",
    "ConfigError",
    "InvalidIntervalError",
    "PolicyConfigError",
    "LifecycleError",
    "SchedulerDisposedError",
    "TriggerClosedError",
]
