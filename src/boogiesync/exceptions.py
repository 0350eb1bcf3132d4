"""Exception hierarchy for the Sync tablet protocols."""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for all boogiesync errors."""


class TransportError(SyncError):
    """Raised when a transport (Bluetooth socket or HID) operation fails."""


class BluetoothConnectionError(TransportError):
    """Raised when the RFCOMM socket cannot connect, send or receive."""


class HIDConnectionError(TransportError):
    """Raised when the HID device cannot be opened or accessed."""


class TransportTimeoutError(TransportError):
    """Raised when a transport operation does not complete in time."""


class ProtocolError(SyncError):
    """Raised when the device violates the OBEX protocol."""


class InvalidResponseError(ProtocolError):
    """Raised when a response buffer is malformed or truncated."""


class SessionStateError(SyncError, RuntimeError):
    """Raised when an operation is called in the wrong session state."""
