from __future__ import annotations

from enum import IntEnum


class SessionState(IntEnum):
    """Connection states shared by the file-transfer and streaming sessions."""
    DISCONNECTED = 0
    DISCONNECTING = 1
    CONNECTING = 2
    CONNECTED = 3


class DeviceMode(IntEnum):
    """Report modes the Sync can be switched into.

    NONE stops input reports, DIGITIZER sends standard digitizer reports,
    CAPTURE sends capture reports and FILE sends a capture report only after
    a file has been saved on the device.
    """
    NONE = 0x01
    DIGITIZER = 0x03
    CAPTURE = 0x04
    FILE = 0x05


class StrokeState(IntEnum):
    """Segmentation state of the trace currently being drawn."""
    NO_POINTS = 0
    ONE_POINT = 1
    MULTIPLE_POINTS = 2
