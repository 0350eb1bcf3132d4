"""Live digitizer streaming from a Sync over HID."""

from __future__ import annotations

import asyncio
import logging

from .events import (
    CaptureReportReceived,
    DevicesUpdated,
    EventBus,
    PathsReceived,
    StateChanged,
)
from .exceptions import (
    InvalidResponseError,
    SessionStateError,
    TransportError,
    TransportTimeoutError,
)
from .ink import StrokeFilter
from .models.capture import CaptureReport, PathSegment
from .models.devices import HIDDevice
from .models.enums import DeviceMode, SessionState
from .transport import HIDConnection, find_hid_devices

_LOGGER = logging.getLogger(__name__)

EVENT_SOURCE = "streaming"

# Feature reports: [report_id, 0x00, value]
MODE_REPORT_ID = 0x05
ERASE_REPORT_ID = 0x04
ERASE_COMMAND = 0x01

# Modes in which input reports carry capture samples
CAPTURE_REPORT_MODES = frozenset({DeviceMode.CAPTURE, DeviceMode.FILE})

# Digitizer extent in digitizer units (0.01 mm)
MAX_X = 20280
MAX_Y = 13942


def build_mode_report(mode: DeviceMode) -> bytes:
    """Feature report switching the device into mode."""
    return bytes([MODE_REPORT_ID, 0x00, mode])


def build_erase_report() -> bytes:
    """Feature report erasing the Sync's display."""
    return bytes([ERASE_REPORT_ID, 0x00, ERASE_COMMAND])


def _is_attached(device: HIDDevice, devices: list[HIDDevice]) -> bool:
    if device.bus is None:
        return any(
            (d.vendor_id, d.product_id) == (device.vendor_id, device.product_id)
            for d in devices
        )
    return device in devices


class StreamingSession:
    """Streams capture reports from a Sync and turns them into ink paths.

    After connecting, the session switches the device into capture mode and
    polls input reports one at a time. Every report is published as
    CaptureReportReceived and run through the stroke filter; completed
    segments are published as PathsReceived.
    """

    def __init__(
            self,
            events: EventBus,
            connection: HIDConnection | None = None,
            mode: DeviceMode = DeviceMode.CAPTURE,
            interface: int | None = None,
            read_timeout: float = 0.5,
    ):
        """Initialize streaming session.

        Args:
            events: Bus that receives the session's events
            connection: Optional pre-built HID connection
            mode: Report mode set on connect (default: CAPTURE)
            interface: HID interface carrying capture reports, or None to pick
                it by usage page (default: None)
            read_timeout: Input report poll timeout in seconds (default: 0.5)
        """
        self._events = events
        self._connection = connection or HIDConnection(
            interface=interface, read_timeout=read_timeout
        )
        self.mode = mode
        self.stroke_filter = StrokeFilter()

        self._state = SessionState.DISCONNECTED
        self._device: HIDDevice | None = None
        self._devices: list[HIDDevice] = []
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def device(self) -> HIDDevice | None:
        """The connected device."""
        return self._device

    @property
    def devices(self) -> list[HIDDevice]:
        return list(self._devices)

    async def refresh_devices(self) -> list[HIDDevice]:
        """Enumerate attached devices, publishing DevicesUpdated on change.

        If the connected device is no longer attached the session is forced
        to DISCONNECTED.

        Raises:
            HIDConnectionError: If no USB backend is available
        """
        devices = await asyncio.to_thread(find_hid_devices)
        if devices != self._devices:
            self._devices = devices
            self._events.publish(DevicesUpdated(source=EVENT_SOURCE, devices=tuple(devices)))

        if self._device is not None and not _is_attached(self._device, devices):
            _LOGGER.info("Device %r detached", self._device)
            await self._connection_lost()
        return self.devices

    async def watch_devices(self, interval: float = 1.0) -> None:
        """Refresh the device list every interval seconds until cancelled."""
        while True:
            try:
                await self.refresh_devices()
            except TransportError as e:
                _LOGGER.warning("Device enumeration failed: %s", e)
            await asyncio.sleep(interval)

    async def connect(self, device: HIDDevice) -> None:
        """Open the device, set the report mode and start polling.

        If the device cannot be opened the session returns to DISCONNECTED.

        Raises:
            SessionStateError: If not DISCONNECTED
        """
        if self._state != SessionState.DISCONNECTED:
            raise SessionStateError("can only connect when disconnected")

        self._update_state(SessionState.CONNECTING)
        try:
            await self._connection.connect(device)
            await self._connection.send_feature_report(build_mode_report(self.mode))
        except TransportError as e:
            _LOGGER.warning("Connection to %r failed: %s", device, e)
            await self._connection.disconnect()
            self._update_state(SessionState.DISCONNECTED)
            return

        self._device = device
        self.stroke_filter.reset()
        self._update_state(SessionState.CONNECTED)
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_input_reports())

    async def disconnect(self) -> None:
        """Stop polling and close the device.

        Raises:
            SessionStateError: If not CONNECTED
        """
        if self._state != SessionState.CONNECTED:
            raise SessionStateError("can only disconnect when connected")

        self._update_state(SessionState.DISCONNECTING)
        task = self._poll_task
        self._poll_task = None
        if task is not None and task is not asyncio.current_task():
            # The loop exits after its current read
            await task
        await self._connection.disconnect()
        self._device = None
        self._update_state(SessionState.DISCONNECTED)

    async def set_mode(self, mode: DeviceMode) -> None:
        """Switch the device's report mode.

        Raises:
            SessionStateError: If not CONNECTED
            HIDConnectionError: If the feature report fails
        """
        if self._state != SessionState.CONNECTED:
            raise SessionStateError("can only set mode when connected")
        await self._connection.send_feature_report(build_mode_report(mode))
        if mode != self.mode:
            # A trace in progress cannot continue across a mode change
            self.stroke_filter.reset()
        self.mode = mode

    async def erase(self) -> None:
        """Erase the Sync's display.

        Raises:
            SessionStateError: If not CONNECTED
            HIDConnectionError: If the feature report fails
        """
        if self._state != SessionState.CONNECTED:
            raise SessionStateError("can only erase when connected")
        await self._connection.send_feature_report(build_erase_report())

    async def _poll_input_reports(self) -> None:
        while self._state == SessionState.CONNECTED:
            try:
                report_id, data = await self._connection.read_input_report()
            except TransportTimeoutError:
                continue
            except TransportError as e:
                _LOGGER.warning("Input report read failed: %s", e)
                if self._state == SessionState.CONNECTED:
                    self._poll_task = None
                    await self._connection_lost()
                return

            if self._state != SessionState.CONNECTED:
                return
            _LOGGER.debug("Input report %d: %s", report_id, data.hex())
            if self.mode not in CAPTURE_REPORT_MODES:
                continue  # Digitizer reports use a different layout
            self.process_report(data)

    def process_report(self, data: bytes) -> list[PathSegment]:
        """Decode one capture report, publish it and the paths it completes."""
        try:
            report = CaptureReport.from_bytes(data)
        except InvalidResponseError as e:
            _LOGGER.warning("Dropping input report: %s", e)
            return []

        self._events.publish(CaptureReportReceived(source=EVENT_SOURCE, report=report))

        paths = self.stroke_filter.filter_report(report)
        if paths:
            self._events.publish(PathsReceived(source=EVENT_SOURCE, paths=tuple(paths)))
        return paths

    async def _connection_lost(self) -> None:
        task = self._poll_task
        self._poll_task = None
        self._update_state(SessionState.DISCONNECTED)
        if task is not None and task is not asyncio.current_task():
            await task
        await self._connection.disconnect()
        self._device = None
        self.stroke_filter.reset()

    def _update_state(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state
        _LOGGER.debug("State %s -> %s", old_state.name, new_state.name)
        self._events.publish(
            StateChanged(source=EVENT_SOURCE, old_state=old_state, new_state=new_state)
        )
