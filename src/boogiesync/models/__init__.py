"""Data models for Sync devices."""

from .capture import (
    CAPTURE_REPORT_SIZE,
    PEN_DOWN_FLAGS,
    RDY_FLAG,
    TSW_FLAG,
    CaptureReport,
    PathSegment,
)
from .devices import BluetoothDevice, HIDDevice
from .enums import DeviceMode, SessionState, StrokeState
from .folder_listing import FileEntry, FolderEntry, FolderListing

__all__ = [
    "BluetoothDevice",
    "CAPTURE_REPORT_SIZE",
    "CaptureReport",
    "DeviceMode",
    "FileEntry",
    "FolderEntry",
    "FolderListing",
    "HIDDevice",
    "PEN_DOWN_FLAGS",
    "PathSegment",
    "RDY_FLAG",
    "SessionState",
    "StrokeState",
    "TSW_FLAG",
]
