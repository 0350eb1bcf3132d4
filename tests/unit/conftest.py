"""Shared fixtures."""

from __future__ import annotations

import pytest

from boogiesync.events import EventBus

from .obex_packets import FOLDER_LISTING_XML


class EventRecorder:
    """Collects every event published on a bus."""

    def __init__(self, bus: EventBus):
        self.events: list = []
        bus.subscribe(self.events.append)

    def of_type(self, event_type: type) -> list:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus)


@pytest.fixture
def folder_listing_xml() -> bytes:
    return FOLDER_LISTING_XML
