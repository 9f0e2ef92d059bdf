"""
Structured error types for ticktock.

Every error raised by the library extends TickTockError and carries a
category plus a small structured context (scheduler name, state, policy,
tick number) so it can be logged as-is with structlog key/value pairs.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       TickTockError                              │
        │               (category, context, cause)                         │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError                  LifecycleError                     │
        │  (CONFIG)                     (LIFECYCLE)                        │
        │       │                            │                             │
        │  InvalidIntervalError         SchedulerDisposedError             │
        │  PolicyConfigError            TriggerClosedError                 │
        └─────────────────────────────────────────────────────────────────┘

Failures raised by user tick callbacks are NOT wrapped: error handlers
receive the original exception object. The hierarchy only covers misuse
of the scheduler itself.

Guardrails:
    ❌ DON'T: Wrap callback failures before handing them to error handlers
    ✅ DO: Deliver the original exception so handlers can inspect it

    ❌ DON'T: Swallow the original exception when re-raising
    ✅ DO: Pass it as cause= for error chaining

Usage:
    from ticktock.errors import SchedulerDisposedError

    try:
        scheduler.start()
    except SchedulerDisposedError as e:
        logger.warning("start_rejected", **e.to_dict())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"          # Invalid interval, unknown policy
    LIFECYCLE = "LIFECYCLE"    # Operation not allowed in current state
    CALLBACK = "CALLBACK"      # Failure raised by a user callback
    INTERNAL = "INTERNAL"      # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"        # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        scheduler: Name of the scheduler involved
        state: Scheduler state when the error was raised
        policy: Active error-handling policy
        tick_number: Tick cycle in which the error occurred
        metadata: Additional key-value pairs
    """

    scheduler: str | None = None
    state: str | None = None
    policy: str | None = None
    tick_number: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["scheduler", "state", "policy", "tick_number"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TickTockError(Exception):
    """
    Base exception for all ticktock errors.

    Subclasses set ``default_category`` to classify themselves.

    Examples:
        >>> error = TickTockError("boom", category=ErrorCategory.INTERNAL)
        >>> error.to_dict()["category"]
        'INTERNAL'

        >>> error = SchedulerDisposedError("start").with_context(scheduler="heartbeat")
        >>> error.context.scheduler
        'heartbeat'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TickTockError:
        """
        Add context to this error (fluent API).

        Usage:
            raise PolicyConfigError("nope").with_context(scheduler="heartbeat")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TickTockError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class InvalidIntervalError(ConfigError):
    """Tick interval is not a strictly positive duration."""

    def __init__(self, value: Any, message: str | None = None):
        self.value = value
        super().__init__(message or f"Tick interval must be a positive duration, got {value!r}")


class PolicyConfigError(ConfigError):
    """Error-handling policy value is not recognized."""

    def __init__(self, value: Any, message: str | None = None):
        self.value = value
        super().__init__(message or f"Unrecognized error-handling policy: {value!r}")


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class LifecycleError(TickTockError):
    """Operation is not valid in the current lifecycle state."""

    default_category = ErrorCategory.LIFECYCLE


class SchedulerDisposedError(LifecycleError):
    """Control operation attempted on a disposed scheduler."""

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Cannot {operation}: scheduler has been disposed")


class TriggerClosedError(LifecycleError):
    """Periodic trigger used after its resources were released."""

    def __init__(self, message: str = "Trigger has been closed"):
        super().__init__(message)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error.

    Anything that is not a TickTockError was raised by user code and is
    classified as a callback failure.
    """
    if isinstance(error, TickTockError):
        return error.category
    if isinstance(error, Exception):
        return ErrorCategory.CALLBACK
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TickTockError",
    "ConfigError",
    "InvalidIntervalError",
    "PolicyConfigError",
    "LifecycleError",
    "SchedulerDisposedError",
    "TriggerClosedError",
    "categorize_error",
]
