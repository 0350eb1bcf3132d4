"""Session events and the publish/subscribe bus that delivers them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .models.capture import CaptureReport, PathSegment
from .models.devices import BluetoothDevice, HIDDevice
from .models.enums import SessionState
from .models.folder_listing import FolderListing

_LOGGER = logging.getLogger(__name__)


class EventKind(Enum):
    STATE_CHANGED = "state_changed"
    DEVICES_UPDATED = "devices_updated"
    FOLDER_LISTED = "folder_listed"
    FOLDER_CHANGED = "folder_changed"
    FILE_RECEIVED = "file_received"
    FILE_DELETED = "file_deleted"
    OPERATION_FAILED = "operation_failed"
    CAPTURE_REPORT_RECEIVED = "capture_report_received"
    PATHS_RECEIVED = "paths_received"


@dataclass(frozen=True)
class StateChanged:
    kind: ClassVar[EventKind] = EventKind.STATE_CHANGED
    source: str
    old_state: SessionState
    new_state: SessionState


@dataclass(frozen=True)
class DevicesUpdated:
    kind: ClassVar[EventKind] = EventKind.DEVICES_UPDATED
    source: str
    devices: tuple[BluetoothDevice | HIDDevice, ...] = ()


@dataclass(frozen=True)
class FolderListed:
    kind: ClassVar[EventKind] = EventKind.FOLDER_LISTED
    source: str
    listing: FolderListing


@dataclass(frozen=True)
class FolderChanged:
    kind: ClassVar[EventKind] = EventKind.FOLDER_CHANGED
    source: str
    name: str


@dataclass(frozen=True)
class FileReceived:
    kind: ClassVar[EventKind] = EventKind.FILE_RECEIVED
    source: str
    name: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class FileDeleted:
    kind: ClassVar[EventKind] = EventKind.FILE_DELETED
    source: str
    name: str


@dataclass(frozen=True)
class OperationFailed:
    """An OBEX operation was abandoned.

    Attributes:
        source: Session that published the event
        operation: Name of the request code (e.g. "GET")
        reason: Short description of the failure
        response_code: Response code from the device, if one was received
    """

    kind: ClassVar[EventKind] = EventKind.OPERATION_FAILED
    source: str
    operation: str
    reason: str
    response_code: int | None = None


@dataclass(frozen=True)
class CaptureReportReceived:
    kind: ClassVar[EventKind] = EventKind.CAPTURE_REPORT_RECEIVED
    source: str
    report: CaptureReport


@dataclass(frozen=True)
class PathsReceived:
    kind: ClassVar[EventKind] = EventKind.PATHS_RECEIVED
    source: str
    paths: tuple[PathSegment, ...]


Event = Union[
    StateChanged,
    DevicesUpdated,
    FolderListed,
    FolderChanged,
    FileReceived,
    FileDeleted,
    OperationFailed,
    CaptureReportReceived,
    PathsReceived,
]

EventHandler = Callable[[Event], None]


class EventBus:
    """Delivers events to registered handlers.

    Handlers run synchronously in registration order. A handler that raises
    is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[EventHandler, frozenset[EventKind] | None]] = []

    def subscribe(
            self,
            handler: EventHandler,
            kinds: Iterable[EventKind] | None = None,
    ) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Called with each matching event
            kinds: Event kinds to receive (default: all)

        Returns:
            Function that unsubscribes the handler
        """
        entry = (handler, frozenset(kinds) if kinds is not None else None)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def publish(self, event: Event) -> None:
        """Deliver event to every handler subscribed to its kind."""
        for handler, kinds in list(self._handlers):
            if kinds is not None and event.kind not in kinds:
                continue
            try:
                handler(event)
            except Exception:
                _LOGGER.exception("Event handler %r failed on %s", handler, event.kind.value)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)
