"""USB HID connection to the Sync digitizer."""

from __future__ import annotations

import asyncio
import logging
import sys

import usb.core
import usb.util

from ..exceptions import HIDConnectionError, TransportTimeoutError
from ..models.devices import HIDDevice

_LOGGER = logging.getLogger(__name__)

# libusb reaches the USB variant of the Sync only; the Bluetooth HID variant
# is owned by the host's Bluetooth stack
USB_VENDOR_ID = 0x2914
USB_PRODUCT_ID = 0x0100

HID_INTERFACE_CLASS = 0x03

# Vendor-defined usage page of the interface carrying capture reports
CAPTURE_USAGE_PAGE = 0xFF00

# HID class requests
_HID_SET_REPORT = 0x09
_HID_REPORT_TYPE_FEATURE = 0x03
_REQUEST_TYPE_CLASS_INTERFACE_OUT = 0x21

# Standard GET_DESCRIPTOR for the HID report descriptor
_REQUEST_TYPE_STANDARD_INTERFACE_IN = 0x81
_GET_DESCRIPTOR = 0x06
_REPORT_DESCRIPTOR_TYPE = 0x22
_REPORT_DESCRIPTOR_SIZE = 256

_USAGE_PAGE_ITEM = 0x04
_LONG_ITEM = 0xFE


def parse_usage_page(descriptor: bytes) -> int | None:
    """Return the first Usage Page declared in a HID report descriptor."""
    index = 0
    while index < len(descriptor):
        prefix = descriptor[index]
        if prefix == _LONG_ITEM:
            if index + 1 >= len(descriptor):
                return None
            index += 3 + descriptor[index + 1]
            continue

        size = (0, 1, 2, 4)[prefix & 0x03]
        data = descriptor[index + 1:index + 1 + size]
        if len(data) < size:
            return None
        if prefix & 0xFC == _USAGE_PAGE_ITEM:
            return int.from_bytes(data, "little")
        index += 1 + size
    return None


def find_hid_devices() -> list[HIDDevice]:
    """List Sync devices attached over USB.

    Raises:
        HIDConnectionError: If no USB backend is available
    """
    try:
        found = usb.core.find(
            find_all=True,
            idVendor=USB_VENDOR_ID,
            idProduct=USB_PRODUCT_ID,
        )
        return [
            HIDDevice(
                vendor_id=device.idVendor,
                product_id=device.idProduct,
                bus=device.bus,
                address=device.address,
            )
            for device in found
        ]
    except (usb.core.NoBackendError, usb.core.USBError) as e:
        raise HIDConnectionError(f"USB enumeration failed: {e}") from e


class HIDConnection:
    """Manages the USB HID interface of a Sync.

    All pyusb calls block, so they run in a worker thread; callers issue
    one operation at a time.
    """

    def __init__(
            self,
            interface: int | None = None,
            read_timeout: float = 0.5,
    ):
        """Initialize HID connection manager.

        Args:
            interface: HID interface number carrying capture reports, or None
                to pick the interface whose report descriptor declares the
                capture usage page 0xFF00 (default: None)
            read_timeout: Timeout of one input report read in seconds (default: 0.5)
        """
        self.interface = interface
        self.read_timeout = read_timeout
        self.device_info: HIDDevice | None = None
        self.interface_number: int | None = None

        self._device: usb.core.Device | None = None
        self._endpoint_in = None
        self._claimed = False
        self._detached_kernel_driver = False

    async def connect(self, device: HIDDevice) -> None:
        """Open and claim the capture interface.

        Raises:
            HIDConnectionError: If the device is missing or cannot be claimed
        """
        if self._device is not None:
            return  # Already connected
        await asyncio.to_thread(self._open, device)
        self.device_info = device

    def _open(self, info: HIDDevice) -> None:
        try:
            device = usb.core.find(
                idVendor=info.vendor_id,
                idProduct=info.product_id,
                custom_match=lambda d: info.bus is None
                or (d.bus == info.bus and d.address == info.address),
            )
        except (usb.core.NoBackendError, usb.core.USBError) as e:
            raise HIDConnectionError(f"USB enumeration failed: {e}") from e
        if device is None:
            raise HIDConnectionError(
                f"Device {info.vendor_id:04x}:{info.product_id:04x} not found"
            )

        try:
            self._claim(device)
        except usb.core.USBError as e:
            self._release(device)
            raise HIDConnectionError(f"Failed to open HID interface: {e}") from e
        except HIDConnectionError:
            self._release(device)
            raise

        self._device = device
        _LOGGER.debug(
            "Opened %04x:%04x interface %d, IN endpoint 0x%02x",
            info.vendor_id,
            info.product_id,
            self.interface_number,
            self._endpoint_in.bEndpointAddress,
        )

    def _claim(self, device: usb.core.Device) -> None:
        intf = self._select_interface(device)
        number = intf.bInterfaceNumber
        self.interface_number = number

        if sys.platform != "win32" and device.is_kernel_driver_active(number):
            device.detach_kernel_driver(number)
            self._detached_kernel_driver = True

        usb.util.claim_interface(device, number)
        self._claimed = True

        endpoint_in = next(
            (
                endpoint
                for endpoint in intf
                if usb.util.endpoint_direction(endpoint.bEndpointAddress)
                == usb.util.ENDPOINT_IN
            ),
            None,
        )
        if endpoint_in is None:
            raise HIDConnectionError(f"No IN endpoint on interface {number}")
        self._endpoint_in = endpoint_in

    def _select_interface(self, device: usb.core.Device):
        hid_interfaces = [
            intf
            for intf in device.get_active_configuration()
            if intf.bInterfaceClass == HID_INTERFACE_CLASS
        ]

        if self.interface is not None:
            for intf in hid_interfaces:
                if intf.bInterfaceNumber == self.interface:
                    return intf
            raise HIDConnectionError(f"HID interface {self.interface} not found")

        for intf in hid_interfaces:
            descriptor = device.ctrl_transfer(
                _REQUEST_TYPE_STANDARD_INTERFACE_IN,
                _GET_DESCRIPTOR,
                _REPORT_DESCRIPTOR_TYPE << 8,
                intf.bInterfaceNumber,
                _REPORT_DESCRIPTOR_SIZE,
            )
            if parse_usage_page(bytes(descriptor)) == CAPTURE_USAGE_PAGE:
                return intf
        raise HIDConnectionError(
            f"No HID interface with usage page 0x{CAPTURE_USAGE_PAGE:04x}"
        )

    async def send_feature_report(self, report: bytes) -> None:
        """Send a feature report; report[0] is the report id.

        Raises:
            HIDConnectionError: If not connected or the transfer fails
        """
        device = self._require_device()
        report_id = report[0]
        _LOGGER.debug("Sending feature report %d: %s", report_id, report.hex())
        try:
            await asyncio.to_thread(
                device.ctrl_transfer,
                _REQUEST_TYPE_CLASS_INTERFACE_OUT,
                _HID_SET_REPORT,
                (_HID_REPORT_TYPE_FEATURE << 8) | report_id,
                self.interface_number,
                report,
            )
        except usb.core.USBError as e:
            raise HIDConnectionError(f"Feature report failed: {e}") from e

    async def read_input_report(self) -> tuple[int, bytes]:
        """Read one input report.

        Returns:
            (report id, report data without the id byte)

        Raises:
            TransportTimeoutError: If no report arrived within read_timeout
            HIDConnectionError: If not connected or the read fails
        """
        device = self._require_device()
        endpoint = self._endpoint_in
        try:
            data = await asyncio.to_thread(
                device.read,
                endpoint.bEndpointAddress,
                endpoint.wMaxPacketSize,
                int(self.read_timeout * 1000),
            )
        except usb.core.USBTimeoutError as e:
            raise TransportTimeoutError("No input report") from e
        except usb.core.USBError as e:
            raise HIDConnectionError(f"Input report read failed: {e}") from e

        data = bytes(data)
        if not data:
            raise HIDConnectionError("Empty input report")
        return data[0], data[1:]

    async def disconnect(self) -> None:
        """Release the interface and close the device."""
        device = self._device
        if device is None:
            return
        self._device = None
        self._endpoint_in = None
        await asyncio.to_thread(self._release, device)

    def _release(self, device: usb.core.Device) -> None:
        # Every step runs even if an earlier one fails
        number = self.interface_number
        if self._claimed:
            self._claimed = False
            try:
                usb.util.release_interface(device, number)
            except usb.core.USBError as e:
                _LOGGER.warning("Error releasing interface %d: %s", number, e)
        if self._detached_kernel_driver:
            self._detached_kernel_driver = False
            try:
                device.attach_kernel_driver(number)
            except usb.core.USBError as e:
                _LOGGER.warning("Error reattaching kernel driver: %s", e)
        try:
            usb.util.dispose_resources(device)
        except usb.core.USBError as e:
            _LOGGER.warning("Error during disconnect: %s", e)
        self._endpoint_in = None
        self.interface_number = None

    def _require_device(self) -> usb.core.Device:
        if self._device is None:
            raise HIDConnectionError("Not connected")
        return self._device

    @property
    def is_connected(self) -> bool:
        return self._device is not None
