"""Unit tests for :mod:`marginalia.ui.events`."""

from __future__ import annotations

import gc
from dataclasses import dataclass

import pytest

from marginalia.ui.events import ColorCycled, Event, EventBus


@dataclass(slots=True)
class SampleEvent(Event):
    """A sample event for testing."""

    message: str
    value: int = 0


class _Listener:
    def __init__(self) -> None:
        self.seen: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.seen.append(event)


class TestEventBus:
    def test_publish_reaches_subscribers_of_the_exact_type(self) -> None:
        bus = EventBus()
        samples: list[Event] = []
        colors: list[Event] = []
        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(ColorCycled, colors.append)

        bus.publish(SampleEvent(message="hello", value=3))

        assert samples == [SampleEvent(message="hello", value=3)]
        assert colors == []

    def test_publish_without_handlers_is_a_noop(self) -> None:
        EventBus().publish(ColorCycled(color="blue"))

    def test_failing_handler_does_not_block_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = EventBus()
        received: list[Event] = []

        def explode(_event: Event) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, explode)
        bus.subscribe(SampleEvent, received.append)

        with caplog.at_level("ERROR", logger="marginalia.ui.events"):
            bus.publish(SampleEvent(message="still delivered"))

        assert len(received) == 1
        assert "explode" in caplog.text

    def test_unsubscribe_removes_first_registration(self) -> None:
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe(SampleEvent, received.append)
        bus.subscribe(SampleEvent, received.append)

        bus.unsubscribe(SampleEvent, received.append)
        bus.unsubscribe(ColorCycled, received.append)
        bus.publish(SampleEvent(message="once"))

        assert len(received) == 1
        assert bus.handler_count(SampleEvent) == 1

    def test_bound_methods_are_weakly_held(self) -> None:
        bus = EventBus()
        listener = _Listener()
        bus.subscribe(SampleEvent, listener.on_event)
        bus.publish(SampleEvent(message="first"))
        assert len(listener.seen) == 1

        del listener
        gc.collect()
        bus.publish(SampleEvent(message="second"))

        assert bus.handler_count(SampleEvent) == 0

    def test_clear_drops_every_handler(self) -> None:
        bus = EventBus()
        bus.subscribe(SampleEvent, lambda event: None)
        bus.subscribe(ColorCycled, lambda event: None)
        assert bus.handler_count() == 2

        bus.clear()

        assert bus.handler_count() == 0
