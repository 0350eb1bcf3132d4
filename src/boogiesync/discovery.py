"""Discovery of Sync tablets known to the BlueZ Bluetooth stack."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from dbus_fast import AuthError, BusType, DBusError, Message, MessageType, unpack_variants
from dbus_fast.aio import MessageBus

from .exceptions import BluetoothConnectionError
from .models.devices import BluetoothDevice
from .protocol import BLUETOOTH_FTP_UUID

_LOGGER = logging.getLogger(__name__)

SYNC_DEVICE_NAME = "Sync"

BLUEZ_SERVICE = "org.bluez"
OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"
DEVICE_INTERFACE = "org.bluez.Device1"


def is_sync_device(name: str | None, service_uuids: list[str]) -> bool:
    """Check whether a device is a Sync offering OBEX FTP."""
    if name != SYNC_DEVICE_NAME:
        return False
    return BLUETOOTH_FTP_UUID in (uuid.lower() for uuid in service_uuids)


async def _get_managed_objects() -> dict[str, dict[str, dict[str, Any]]]:
    bus = MessageBus(bus_type=BusType.SYSTEM)
    try:
        await bus.connect()
        reply = await bus.call(
            Message(
                destination=BLUEZ_SERVICE,
                path="/",
                interface=OBJECT_MANAGER_INTERFACE,
                member="GetManagedObjects",
            )
        )
    finally:
        bus.disconnect()

    if reply.message_type == MessageType.ERROR:
        raise BluetoothConnectionError(f"BlueZ query failed: {reply.error_name} {reply.body}")
    return unpack_variants(reply.body[0])


def parse_known_devices(objects: dict[str, dict[str, dict[str, Any]]]) -> list[BluetoothDevice]:
    """Pick the Sync tablets out of BlueZ's managed objects.

    Args:
        objects: Unpacked GetManagedObjects result (path -> interface -> properties)
    """
    devices = []
    for path in sorted(objects):
        props = objects[path].get(DEVICE_INTERFACE)
        if props is None:
            continue
        name = props.get("Name")
        if is_sync_device(name, props.get("UUIDs", [])):
            devices.append(BluetoothDevice(address=props["Address"], name=name))
    return devices


async def discover_devices(timeout: float = 5.0) -> list[BluetoothDevice]:
    """List Sync tablets known to the local Bluetooth adapter.

    The FTP service is a Bluetooth Classic (RFCOMM) service, so the device
    must have been paired or discovered by BlueZ; its service UUIDs come from
    the SDP records BlueZ cached.

    Args:
        timeout: Seconds to wait for BlueZ to answer (default: 5)

    Returns:
        Devices named "Sync" offering the Bluetooth FTP service

    Raises:
        BluetoothConnectionError: If BlueZ or the system bus is unavailable
    """
    try:
        objects = await asyncio.wait_for(_get_managed_objects(), timeout)
    except (AuthError, DBusError, OSError, asyncio.TimeoutError) as e:
        raise BluetoothConnectionError(f"Bluetooth device query failed: {e}") from e

    devices = parse_known_devices(objects)
    _LOGGER.debug("Found %d Sync device(s)", len(devices))
    return devices
