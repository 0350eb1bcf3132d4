"""Boogie Board Sync protocol package.

  Pure Python package for browsing files on a Sync tablet over OBEX FTP and
  streaming its digitizer as pressure-weighted ink strokes.
  """

from .discovery import discover_devices
from .events import (
    CaptureReportReceived,
    DevicesUpdated,
    Event,
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
from .exceptions import (
    BluetoothConnectionError,
    HIDConnectionError,
    InvalidResponseError,
    ProtocolError,
    SessionStateError,
    SyncError,
    TransportError,
    TransportTimeoutError,
)
from .file_transfer import FileTransferSession
from .ink import StrokeFilter
from .models import (
    BluetoothDevice,
    CaptureReport,
    DeviceMode,
    FileEntry,
    FolderEntry,
    FolderListing,
    HIDDevice,
    PathSegment,
    SessionState,
    StrokeState,
)
from .streaming import MAX_X, MAX_Y, StreamingSession
from .transport import find_hid_devices

__version__ = "0.1.0"

__all__ = [
    # Main API
    "FileTransferSession",
    "StreamingSession",
    "StrokeFilter",
    "EventBus",
    "discover_devices",
    "find_hid_devices",
    # Events
    "Event",
    "EventKind",
    "StateChanged",
    "DevicesUpdated",
    "FolderListed",
    "FolderChanged",
    "FileReceived",
    "FileDeleted",
    "OperationFailed",
    "CaptureReportReceived",
    "PathsReceived",
    # Exceptions
    "SyncError",
    "TransportError",
    "BluetoothConnectionError",
    "HIDConnectionError",
    "TransportTimeoutError",
    "ProtocolError",
    "InvalidResponseError",
    "SessionStateError",
    # Models
    "BluetoothDevice",
    "HIDDevice",
    "CaptureReport",
    "PathSegment",
    "FolderListing",
    "FolderEntry",
    "FileEntry",
    # Enums
    "DeviceMode",
    "SessionState",
    "StrokeState",
    # Constants
    "MAX_X",
    "MAX_Y",
]
