"""Tests for the ticktock error hierarchy."""

import pytest

from ticktock import (
    ConfigError,
    ErrorCategory,
    InvalidIntervalError,
    LifecycleError,
    PolicyConfigError,
    SchedulerDisposedError,
    TickTockError,
    TriggerClosedError,
)
from ticktock.errors import ErrorContext, categorize_error


class TestHierarchy:
    """Test subclass relationships and default categories."""

    @pytest.mark.parametrize(
        "error, parent, category",
        [
            (InvalidIntervalError(0), ConfigError, ErrorCategory.CONFIG),
            (PolicyConfigError("panic"), ConfigError, ErrorCategory.CONFIG),
            (SchedulerDisposedError("start"), LifecycleError, ErrorCategory.LIFECYCLE),
            (TriggerClosedError(), LifecycleError, ErrorCategory.LIFECYCLE),
        ],
    )
    def test_category(self, error, parent, category):
        assert isinstance(error, parent)
        assert isinstance(error, TickTockError)
        assert error.category is category

    def test_base_defaults_to_internal(self):
        assert TickTockError("boom").category is ErrorCategory.INTERNAL

    def test_explicit_category_overrides_default(self):
        error = ConfigError("bad", category=ErrorCategory.UNKNOWN)
        assert error.category is ErrorCategory.UNKNOWN


class TestMessages:
    def test_invalid_interval_keeps_value(self):
        error = InvalidIntervalError(-2)
        assert error.value == -2
        assert "-2" in str(error)

    def test_policy_error_keeps_value(self):
        error = PolicyConfigError("panic")
        assert error.value == "panic"
        assert "'panic'" in error.message

    def test_disposed_names_operation(self):
        error = SchedulerDisposedError("set policy")
        assert error.operation == "set policy"
        assert str(error) == "Cannot set policy: scheduler has been disposed"

    def test_custom_message(self):
        assert str(InvalidIntervalError(0, "interval too small")) == "interval too small"


class TestContext:
    """Test with_context and to_dict."""

    def test_with_context_sets_known_fields(self):
        error = SchedulerDisposedError("start").with_context(scheduler="heartbeat", state="disposed")
        assert error.context.scheduler == "heartbeat"
        assert error.context.state == "disposed"

    def test_with_context_unknown_keys_go_to_metadata(self):
        error = TickTockError("boom").with_context(attempt=3, metadata="x")
        assert error.context.metadata == {"attempt": 3, "metadata": "x"}

    def test_to_dict(self):
        cause = RuntimeError("root")
        error = PolicyConfigError("panic").with_context(scheduler="heartbeat", tick_number=4)
        error = TickTockError("wrapped", category=ErrorCategory.CONFIG, context=error.context, cause=cause)

        data = error.to_dict()
        assert data == {
            "error_type": "TickTockError",
            "message": "wrapped",
            "category": "CONFIG",
            "context": {"scheduler": "heartbeat", "tick_number": 4},
            "cause": "root",
        }
        assert error.__cause__ is cause

    def test_to_dict_omits_empty_context(self):
        assert "context" not in TriggerClosedError().to_dict()

    def test_context_to_dict_flattens_metadata(self):
        ctx = ErrorContext(scheduler="a", metadata={"extra": 1})
        assert ctx.to_dict() == {"scheduler": "a", "extra": 1}

    def test_repr(self):
        assert repr(TriggerClosedError()) == "TriggerClosedError('Trigger has been closed', category=LIFECYCLE)"


class TestCategorizeError:
    def test_ticktock_error(self):
        assert categorize_error(PolicyConfigError("x")) is ErrorCategory.CONFIG

    def test_user_exception_is_callback(self):
        assert categorize_error(ValueError("user bug")) is ErrorCategory.CALLBACK

    def test_base_exception_is_unknown(self):
        assert categorize_error(KeyboardInterrupt()) is ErrorCategory.UNKNOWN
