"""Test the event bus."""

import dataclasses

import pytest

from boogiesync.events import (
    EventBus,
    EventKind,
    FileDeleted,
    FileReceived,
    FolderChanged,
    FolderListed,
    OperationFailed,
    PathsReceived,
    StateChanged,
)
from boogiesync.models import FileEntry, FolderListing, SessionState


class TestEventBus:
    """Test subscription and delivery."""

    def test_delivers_to_all_handlers_in_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe(lambda event: calls.append(("first", event)))
        bus.subscribe(lambda event: calls.append(("second", event)))

        event = FolderChanged(source="file_transfer", name="SAVED")
        bus.publish(event)

        assert calls == [("first", event), ("second", event)]

    def test_kind_filter(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append, kinds=[EventKind.FILE_DELETED])

        bus.publish(FolderChanged(source="file_transfer", name="SAVED"))
        bus.publish(FileDeleted(source="file_transfer", name="A.PDF"))

        assert received == [FileDeleted(source="file_transfer", name="A.PDF")]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)

        unsubscribe()
        unsubscribe()  # Second call is a no-op
        bus.publish(FolderChanged(source="file_transfer", name="SAVED"))

        assert received == []
        assert bus.handler_count == 0

    def test_failing_handler_does_not_stop_delivery(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.publish(FolderChanged(source="file_transfer", name="SAVED"))

        assert received == [FolderChanged(source="file_transfer", name="SAVED")]
        assert "Event handler" in caplog.text

    def test_event_kinds(self):
        event = StateChanged(
            source="file_transfer",
            old_state=SessionState.DISCONNECTED,
            new_state=SessionState.CONNECTING,
        )
        assert event.kind == EventKind.STATE_CHANGED
        assert FileDeleted.kind == EventKind.FILE_DELETED


class TestEventSource:
    """Every event names the session that published it."""

    @pytest.mark.parametrize(
        "event_type",
        [FolderListed, FolderChanged, FileReceived, FileDeleted, OperationFailed, PathsReceived],
    )
    def test_source_is_first_field(self, event_type):
        assert dataclasses.fields(event_type)[0].name == "source"

    def test_source_distinguishes_events(self):
        first = FileDeleted(source="file_transfer", name="A.PDF")
        second = FileDeleted(source="other", name="A.PDF")

        assert first != second


class TestImmutableListing:
    """A listing carried by an event cannot be changed by a subscriber."""

    def test_listing_is_frozen(self):
        listing = FolderListing(files=(FileEntry(name="A.PDF"),))
        event = FolderListed(source="file_transfer", listing=listing)

        with pytest.raises(dataclasses.FrozenInstanceError):
            event.listing.files = ()
        assert not hasattr(event.listing.files, "append")
        assert hash(event) == hash(FolderListed(source="file_transfer", listing=listing))
