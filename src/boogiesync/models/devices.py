"""Descriptors for discovered Sync devices."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BluetoothDevice:
    """A Sync found by Bluetooth discovery."""

    address: str
    name: str | None = None


@dataclass(frozen=True)
class HIDDevice:
    """A Sync found on the USB bus.

    Attributes:
        vendor_id: USB vendor id
        product_id: USB product id
        bus: USB bus number
        address: Device address on the bus
    """

    vendor_id: int
    product_id: int
    bus: int | None = None
    address: int | None = None
