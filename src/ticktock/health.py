"""Scheduler health snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .enums import ErrorHandlingPolicy, SchedulerState


@dataclass(frozen=True)
class SchedulerHealth:
    """Point-in-time view of a TickScheduler.

    ``healthy`` is true only while the scheduler is running and its
    trigger thread is alive.
    """

    healthy: bool
    name: str
    state: SchedulerState
    policy: ErrorHandlingPolicy
    interval_seconds: float
    tick_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    last_tick: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "healthy": self.healthy,
            "name": self.name,
            "state": self.state.value,
            "policy": self.policy.value,
            "interval_seconds": self.interval_seconds,
            "tick_count": self.tick_count,
            "failure_count": self.failure_count,
            "skipped_count": self.skipped_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "last_error": self.last_error,
        }
