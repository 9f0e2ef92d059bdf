"""Tests for CallbackChannel."""

import pytest

from ticktock import CallbackChannel


def handler_a():
    pass


def handler_b():
    pass


class TestCallbackChannel:
    """Test ordered registration, removal and snapshot delivery."""

    def test_empty(self):
        channel = CallbackChannel("tick")
        assert len(channel) == 0
        assert channel.snapshot() == ()

    def test_preserves_registration_order(self):
        channel = CallbackChannel("tick")
        channel.subscribe(handler_b)
        channel.subscribe(handler_a)
        assert channel.snapshot() == (handler_b, handler_a)

    def test_subscribe_returns_handler(self):
        channel = CallbackChannel("tick")
        assert channel.subscribe(handler_a) is handler_a

    def test_duplicates_allowed(self):
        channel = CallbackChannel("tick")
        channel.subscribe(handler_a)
        channel.subscribe(handler_a)
        assert len(channel) == 2

    def test_unsubscribe_removes_last_registration(self):
        channel = CallbackChannel("tick")
        channel.subscribe(handler_a)
        channel.subscribe(handler_b)
        channel.subscribe(handler_a)

        assert channel.unsubscribe(handler_a) is True
        assert channel.snapshot() == (handler_a, handler_b)

    def test_unsubscribe_missing(self):
        channel = CallbackChannel("tick")
        assert channel.unsubscribe(handler_a) is False

    def test_rejects_non_callable(self):
        channel = CallbackChannel("error")
        with pytest.raises(TypeError):
            channel.subscribe("not callable")

    def test_snapshot_isolated_from_mutation(self):
        channel = CallbackChannel("tick")
        channel.subscribe(handler_a)

        delivered = []
        for handler in channel:
            delivered.append(handler)
            channel.subscribe(handler_b)

        assert delivered == [handler_a]
        assert len(channel) == 2

    def test_contains_and_clear(self):
        channel = CallbackChannel("tick")
        channel.subscribe(handler_a)
        assert handler_a in channel
        assert handler_b not in channel

        channel.clear()
        assert len(channel) == 0

    def test_repr(self):
        channel = CallbackChannel("error")
        channel.subscribe(handler_a)
        assert repr(channel) == "CallbackChannel('error', handlers=1)"
