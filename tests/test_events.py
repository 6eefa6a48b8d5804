"""Tests for the event emitter."""

from __future__ import annotations

from ceedscope.events import EventEmitter, RunFinishedEvent, TestEvent


class TestEventEmitter:
    def test_fire_reaches_subscribers_in_order(self) -> None:
        emitter: EventEmitter[str] = EventEmitter()
        received: list[str] = []
        emitter.subscribe(lambda e: received.append(f"a:{e}"))
        emitter.subscribe(lambda e: received.append(f"b:{e}"))

        emitter.fire("x")

        assert received == ["a:x", "b:x"]

    def test_unsubscribe(self) -> None:
        emitter: EventEmitter[str] = EventEmitter()
        received: list[str] = []
        unsubscribe = emitter.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        emitter.fire("x")

        assert received == []

    def test_failing_listener_does_not_block_others(self) -> None:
        emitter: EventEmitter[str] = EventEmitter()
        received: list[str] = []

        def _boom(_: str) -> None:
            raise RuntimeError("listener failed")

        emitter.subscribe(_boom)
        emitter.subscribe(received.append)

        emitter.fire("x")

        assert received == ["x"]

    def test_clear(self) -> None:
        emitter: EventEmitter[RunFinishedEvent] = EventEmitter()
        received: list[RunFinishedEvent] = []
        emitter.subscribe(received.append)

        emitter.clear()
        emitter.fire(RunFinishedEvent())

        assert received == []


class TestEventTypes:
    def test_test_event_defaults(self) -> None:
        event = TestEvent(test_id="a::b", state="passed")
        assert event.type == "test"
        assert event.message is None
        assert event.decorations == []
