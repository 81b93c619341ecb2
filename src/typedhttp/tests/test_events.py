"""Tests for the event emitter and scoped listener registration."""

from __future__ import annotations

from typedhttp.runtime.events import EventEmitter


class TestEventEmitter:
    def test_emit_calls_listeners_in_order(self) -> None:
        emitter = EventEmitter()
        calls: list[tuple[str, object]] = []
        emitter.on("data", lambda v: calls.append(("first", v)))
        emitter.on("data", lambda v: calls.append(("second", v)))

        assert emitter.emit("data", 1) is True
        assert calls == [("first", 1), ("second", 1)]

    def test_emit_without_listeners(self) -> None:
        assert EventEmitter().emit("error", RuntimeError("x")) is False

    def test_remove_listener(self) -> None:
        emitter = EventEmitter()
        listener = emitter.on("data", lambda: None)
        assert emitter.remove_listener("data", listener) is True
        assert emitter.remove_listener("data", listener) is False
        assert emitter.listener_count("data") == 0

    def test_listener_may_remove_itself_while_emitting(self) -> None:
        emitter = EventEmitter()
        seen: list[str] = []

        def once() -> None:
            emitter.remove_listener("tick", once)
            seen.append("once")

        emitter.on("tick", once)
        emitter.on("tick", lambda: seen.append("always"))
        emitter.emit("tick")
        emitter.emit("tick")
        assert seen == ["once", "always", "always"]


class TestRegistration:
    def test_release_removes_every_listener_once(self) -> None:
        emitter = EventEmitter()
        registration = emitter.listening({"ok": lambda: None, "error": lambda e: None})
        assert emitter.listener_count("ok") == emitter.listener_count("error") == 1

        registration.release()
        registration.release()
        assert registration.released
        assert emitter.listener_count("ok") == emitter.listener_count("error") == 0

    def test_leaving_context_releases(self) -> None:
        emitter = EventEmitter()
        try:
            with emitter.listening({"ok": lambda: None}):
                raise KeyError("boom")
        except KeyError:
            pass
        assert emitter.listener_count("ok") == 0

    def test_release_leaves_other_listeners(self) -> None:
        emitter = EventEmitter()
        keep = emitter.on("ok", lambda: None)
        with emitter.listening({"ok": lambda: None}):
            assert emitter.listener_count("ok") == 2
        assert emitter.listener_count("ok") == 1
        assert emitter.remove_listener("ok", keep)
