"""Unit tests for the listener registry."""

from unittest.mock import Mock

import pytest

from arango_storage.common.events import EventEmitter


@pytest.mark.unit
class TestEventEmitter:
    """Test listener registration and dispatch."""

    def test_emit_calls_listeners_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("ready", lambda: calls.append("first"))
        emitter.on("ready", lambda: calls.append("second"))

        assert emitter.emit("ready") is True
        assert calls == ["first", "second"]

    def test_emit_passes_arguments(self):
        emitter = EventEmitter()
        listener = emitter.on("error", Mock())
        error = RuntimeError("boom")

        emitter.emit("error", error)

        listener.assert_called_once_with(error)

    def test_emit_without_listeners(self):
        assert EventEmitter().emit("ready") is False

    def test_unhandled_error_is_logged_not_raised(self):
        assert EventEmitter().emit("error", RuntimeError("boom")) is False

    def test_off_removes_listener(self):
        emitter = EventEmitter()
        listener = emitter.on("ready", Mock())

        emitter.off("ready", listener)
        emitter.off("ready", listener)
        emitter.emit("ready")

        listener.assert_not_called()
        assert emitter.listeners("ready") == []

    def test_failing_listener_does_not_stop_others(self):
        emitter = EventEmitter()
        emitter.on("error", Mock(side_effect=ValueError("listener bug")))
        survivor = emitter.on("error", Mock())

        emitter.emit("error", RuntimeError("boom"))

        survivor.assert_called_once()
