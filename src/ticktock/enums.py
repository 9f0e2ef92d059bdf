"""
Shared enums for ticktock.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class ErrorHandlingPolicy(str, Enum):
    """
    Response to a tick callback that raises.

    The policy is read at the moment a failure is captured, so changing it
    affects the next failure, never the one currently being handled.
    """

    IGNORE = "ignore"                      # Discard silently
    LOG_AND_CONTINUE = "log_and_continue"  # Notify error handlers, keep going
    STOP = "stop"                          # Notify error handlers, then halt


class SchedulerState(str, Enum):
    """Lifecycle states of a TickScheduler."""

    CREATED = "created"    # Trigger inert, never started
    RUNNING = "running"    # Trigger armed
    STOPPED = "stopped"    # Trigger disarmed, may be restarted
    DISPOSED = "disposed"  # Terminal

    @property
    def is_terminal(self) -> bool:
        return self is SchedulerState.DISPOSED
