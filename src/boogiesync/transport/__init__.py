"""Transports to the Sync: RFCOMM for file transfer, HID for streaming."""

from .hid import HIDConnection, find_hid_devices
from .rfcomm import DEFAULT_FTP_CHANNEL, RFCOMMConnection

__all__ = [
    "DEFAULT_FTP_CHANNEL",
    "HIDConnection",
    "RFCOMMConnection",
    "find_hid_devices",
]
