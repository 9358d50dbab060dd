"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

from mentionkit.events import Event, EventBus
from mentionkit.markup.codec import DEFAULT_MARKUP, compile_template

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def template():
    return compile_template(DEFAULT_MARKUP)


@pytest.fixture
def users() -> list[dict[str, str]]:
    return [
        {"id": "1", "display": "Alice"},
        {"id": "2", "display": "Alan"},
        {"id": "7", "display": "Bob"},
    ]


class EventRecorder:
    """Collects every event published on a bus, in order."""

    def __init__(self, bus: EventBus, *event_types: type[Event]) -> None:
        self.events: list[Event] = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type[Event]) -> list[Event]:
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def record_events():
    def factory(bus: EventBus, *event_types: type[Event]) -> EventRecorder:
        return EventRecorder(bus, *event_types)

    return factory
