"""OBEX File Transfer session with a Sync tablet."""

from __future__ import annotations

import asyncio
import logging

from .discovery import discover_devices
from .events import (
    DevicesUpdated,
    EventBus,
    FileDeleted,
    FileReceived,
    FolderChanged,
    FolderListed,
    OperationFailed,
    StateChanged,
)
from .exceptions import (
    InvalidResponseError,
    ProtocolError,
    SessionStateError,
    TransportError,
)
from .models.devices import BluetoothDevice
from .models.enums import SessionState
from .protocol import (
    HeaderId,
    Request,
    RequestCode,
    RequestFlags,
    Response,
    ResponseCode,
    build_connect_request,
    build_delete_request,
    build_disconnect_request,
    build_get_file_request,
    build_list_folder_request,
    build_set_path_request,
    describe_response_code,
    parse_folder_listing,
)
from .transport import DEFAULT_FTP_CHANNEL, RFCOMMConnection

_LOGGER = logging.getLogger(__name__)

EVENT_SOURCE = "file_transfer"

# Requests whose failure ends the session
_SESSION_REQUESTS = frozenset({RequestCode.CONNECT, RequestCode.DISCONNECT})


def _operation_name(request: Request) -> str:
    try:
        return RequestCode(request.code).name
    except ValueError:
        return f"0x{request.code:02x}"


def _is_known_code(code: int) -> bool:
    try:
        ResponseCode(code)
    except ValueError:
        return False
    return True


def _request_name(request: Request) -> str:
    header = request.get_header(HeaderId.NAME)
    return header.name if header is not None and header.name is not None else ""


class FileTransferSession:
    """Browses and retrieves files stored on a Sync over OBEX FTP.

    The session owns one RFCOMM connection and allows a single outstanding
    request. Results are published on the event bus rather than returned:
    FolderListed, FileReceived, FileDeleted, FolderChanged, StateChanged,
    DevicesUpdated and OperationFailed.

    Usage:
        events = EventBus()
        events.subscribe(print)
        session = FileTransferSession(events)
        await session.connect("AA:BB:CC:DD:EE:FF")
        # ... once StateChanged reports CONNECTED:
        await session.list_folder()
    """

    def __init__(
            self,
            events: EventBus,
            connection: RFCOMMConnection | None = None,
            channel: int = DEFAULT_FTP_CHANNEL,
            connect_timeout: float = 10.0,
            request_timeout: float | None = 10.0,
    ):
        """Initialize file transfer session.

        Args:
            events: Bus that receives the session's events
            connection: Optional pre-built RFCOMM connection
            channel: RFCOMM channel of the FTP service (default: 1)
            connect_timeout: Socket connection timeout in seconds (default: 10)
            request_timeout: Seconds to wait for a response before abandoning
                the request, or None to wait forever (default: 10)
        """
        self._events = events
        self._connection = connection or RFCOMMConnection(channel=channel, timeout=connect_timeout)
        self.request_timeout = request_timeout

        self._state = SessionState.DISCONNECTED
        self._address: str | None = None
        self._obex_connection_id: bytes | None = None
        self._devices: list[BluetoothDevice] = []

        self._pending: Request | None = None
        self._pending_timer: asyncio.TimerHandle | None = None
        self._timeout_task: asyncio.Task[None] | None = None
        self._folder_buffer: bytearray | None = None
        self._file_buffer: bytearray | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def address(self) -> str | None:
        """Address of the connected device."""
        return self._address

    @property
    def obex_connection_id(self) -> bytes | None:
        """OBEX connection id assigned by the device."""
        return self._obex_connection_id

    @property
    def devices(self) -> list[BluetoothDevice]:
        """Sync devices found by the last refresh_devices()."""
        return list(self._devices)

    @property
    def pending_request(self) -> Request | None:
        return self._pending

    async def refresh_devices(self, timeout: float = 5.0) -> list[BluetoothDevice]:
        """Scan for Sync devices, publishing DevicesUpdated if the list changed.

        Raises:
            BluetoothConnectionError: If the Bluetooth adapter is unavailable
        """
        devices = await discover_devices(timeout=timeout)
        if devices != self._devices:
            self._devices = devices
            self._events.publish(DevicesUpdated(source=EVENT_SOURCE, devices=tuple(devices)))
        return self.devices

    async def connect(self, address: str) -> None:
        """Open the transport and send OBEX CONNECT.

        The session is CONNECTED once the device accepts the CONNECT. If the
        transport cannot be opened the session returns to DISCONNECTED.

        Raises:
            SessionStateError: If not DISCONNECTED
        """
        if not address:
            raise ValueError("device address must be valid")
        if self._state != SessionState.DISCONNECTED:
            raise SessionStateError("can only connect when disconnected")

        self._update_state(SessionState.CONNECTING)
        try:
            await self._connection.connect(address)
        except TransportError as e:
            _LOGGER.warning("Connection to %s failed: %s", address, e)
            self._update_state(SessionState.DISCONNECTED)
            self._events.publish(
                OperationFailed(source=EVENT_SOURCE, operation="CONNECT", reason=str(e))
            )
            return

        self._address = address
        self._connection.start_receiving(self.handle_response, self._handle_transport_error)
        await self._send_request(build_connect_request())

    async def disconnect(self, address: str | None = None) -> None:
        """Send OBEX DISCONNECT, abandoning any pending request.

        Raises:
            SessionStateError: If not CONNECTED
        """
        self._check_address(address)
        if self._state != SessionState.CONNECTED:
            raise SessionStateError("can only disconnect when connected")

        if self._pending is not None:
            _LOGGER.info("Abandoning pending %s", _operation_name(self._pending))
            self._clear_pending()
        self._discard_transfer()

        self._update_state(SessionState.DISCONNECTING)
        await self._send_request(build_disconnect_request(self._obex_connection_id))

    async def close(self) -> None:
        """Drop the transport immediately without an OBEX DISCONNECT."""
        self._clear_pending()
        self._discard_transfer()
        await self._close_transport()

    async def list_folder(self, address: str | None = None) -> None:
        """Request the listing of the current folder (published as FolderListed)."""
        self._check_ready(address, "list folder")
        await self._send_request(build_list_folder_request(self._obex_connection_id))

    async def change_folder(self, name: str, address: str | None = None) -> None:
        """Change the current folder.

        Args:
            name: Sub-folder name, '' for the root folder or '..' for the parent
        """
        if name is None:
            raise ValueError("name must be valid")
        self._check_ready(address, "change folder")
        await self._send_request(build_set_path_request(self._obex_connection_id, name))

    async def get_file(self, name: str, address: str | None = None) -> None:
        """Request a file from the current folder (published as FileReceived)."""
        if not name:
            raise ValueError("name must be valid")
        self._check_ready(address, "get file")
        await self._send_request(build_get_file_request(self._obex_connection_id, name))

    async def delete_file(self, name: str, address: str | None = None) -> None:
        """Delete a file from the current folder (published as FileDeleted)."""
        if not name:
            raise ValueError("name must be valid")
        self._check_ready(address, "delete file")
        await self._send_request(build_delete_request(self._obex_connection_id, name))

    def _check_address(self, address: str | None) -> None:
        if address is not None and address != self._address:
            raise ValueError(f"not connected to {address}")

    def _check_ready(self, address: str | None, operation: str) -> None:
        self._check_address(address)
        if self._state != SessionState.CONNECTED:
            raise SessionStateError(f"can only {operation} when connected")
        if self._pending is not None:
            raise SessionStateError(
                f"can only {operation} when no request is pending "
                f"({_operation_name(self._pending)} in progress)"
            )

    async def _send_request(self, request: Request) -> None:
        self._pending = request
        self._start_timer(request)
        try:
            await self._connection.write(request.data)
        except TransportError as e:
            _LOGGER.warning("Sending %s failed: %s", _operation_name(request), e)
            if self._pending is request:
                self._clear_pending()
            await self._fail(request, f"send failed: {e}")

    def _start_timer(self, request: Request) -> None:
        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None
        if self.request_timeout is None:
            return
        self._pending_timer = asyncio.get_running_loop().call_later(
            self.request_timeout, self._on_request_timeout, request
        )

    def _on_request_timeout(self, request: Request) -> None:
        if self._pending is not request:
            return
        _LOGGER.warning(
            "%s got no response within %ss, abandoning it",
            _operation_name(request),
            self.request_timeout,
        )
        self._pending_timer = None
        self._pending = None
        self._timeout_task = asyncio.get_running_loop().create_task(
            self._fail(request, "timeout")
        )

    def _clear_pending(self) -> None:
        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None
        self._pending = None

    def _discard_transfer(self) -> None:
        self._folder_buffer = None
        self._file_buffer = None

    async def handle_response(self, data: bytes) -> None:
        """Process one complete OBEX packet received from the device.

        Called by the transport; never raises.
        """
        try:
            await self._process_response(data)
        except Exception:
            _LOGGER.exception("Unexpected error handling response")
            self._clear_pending()
            self._discard_transfer()

    async def _process_response(self, data: bytes) -> None:
        request = self._pending
        if request is None:
            _LOGGER.error("Received response with no pending request: %s", bytes(data[:8]).hex())
            self._events.publish(
                OperationFailed(
                    source=EVENT_SOURCE,
                    operation="UNKNOWN",
                    reason="response without pending request",
                    response_code=data[0] if data else None,
                )
            )
            return
        self._clear_pending()

        try:
            response = Response.parse(data, connect=request.code == RequestCode.CONNECT)
        except InvalidResponseError as e:
            _LOGGER.warning("Malformed response to %s: %s", _operation_name(request), e)
            await self._fail(request, f"malformed response: {e}")
            return

        _LOGGER.debug("%s -> %r", _operation_name(request), response)

        if response.code == ResponseCode.SUCCESS:
            await self._handle_success(request, response)
        elif response.code == ResponseCode.CONTINUE:
            await self._handle_continue(request, response)
        elif _is_known_code(response.code):
            reason = describe_response_code(response.code)
            _LOGGER.warning("%s failed: %s", _operation_name(request), reason)
            await self._fail(request, reason.lower(), response.code)
        elif request.code in _SESSION_REQUESTS:
            _LOGGER.warning(
                "Unrecognized response 0x%02x to %s", response.code, _operation_name(request)
            )
            await self._fail(
                request, f"unrecognized response 0x{response.code:02x}", response.code
            )
        else:
            _LOGGER.warning("Response code not handled: 0x%02x", response.code)
            self._discard_transfer()

    async def _handle_success(self, request: Request, response: Response) -> None:
        code = request.code

        if code == RequestCode.CONNECT:
            connection_id = response.connection_id
            if connection_id is None:
                _LOGGER.warning("CONNECT response missing connection id")
                await self._fail(request, "missing connection id", response.code)
                return
            self._obex_connection_id = connection_id
            _LOGGER.info("OBEX FTP connected to %s", self._address)
            self._update_state(SessionState.CONNECTED)

        elif code == RequestCode.DISCONNECT:
            await self._close_transport()

        elif code == RequestCode.SET_PATH:
            if request.flags & RequestFlags.BACKUP:
                name = ".."
            else:
                name = _request_name(request)
            self._events.publish(FolderChanged(source=EVENT_SOURCE, name=name))

        elif code == RequestCode.GET:
            end_of_body = response.get_header(HeaderId.END_OF_BODY)
            if end_of_body is None:
                _LOGGER.warning("GET response missing END_OF_BODY")
                await self._fail(request, "missing end of body", response.code)
                return
            self._accumulate(request, end_of_body.body or b"")
            await self._finish_transfer(request)

        elif code == RequestCode.PUT:
            self._events.publish(
                FileDeleted(source=EVENT_SOURCE, name=_request_name(request))
            )

        else:
            _LOGGER.debug("Ignoring SUCCESS for %s", _operation_name(request))

    async def _handle_continue(self, request: Request, response: Response) -> None:
        if request.code != RequestCode.GET:
            _LOGGER.warning("Unexpected CONTINUE for %s", _operation_name(request))
            if request.code in _SESSION_REQUESTS:
                await self._fail(request, "unexpected continue", response.code)
            return

        body = response.get_header(HeaderId.BODY)
        if body is None:
            _LOGGER.warning("CONTINUE response missing BODY")
            await self._fail(request, "missing body", response.code)
            return

        self._accumulate(request, body.body or b"")
        # Same request again pulls the next chunk
        await self._send_request(request)

    def _accumulate(self, request: Request, data: bytes) -> None:
        if request.get_header(HeaderId.TYPE) is not None:
            if self._folder_buffer is None:
                self._folder_buffer = bytearray()
            self._folder_buffer.extend(data)
        else:
            if self._file_buffer is None:
                self._file_buffer = bytearray()
            self._file_buffer.extend(data)

    async def _finish_transfer(self, request: Request) -> None:
        if request.get_header(HeaderId.TYPE) is not None:
            data = bytes(self._folder_buffer or b"")
            self._folder_buffer = None
            try:
                listing = parse_folder_listing(data)
            except ProtocolError as e:
                _LOGGER.warning("Discarding folder listing: %s", e)
                await self._fail(request, str(e))
                return
            _LOGGER.debug(
                "Listed %d folder(s), %d file(s)", len(listing.folders), len(listing.files)
            )
            self._events.publish(FolderListed(source=EVENT_SOURCE, listing=listing))
        else:
            data = bytes(self._file_buffer or b"")
            self._file_buffer = None
            name = _request_name(request)
            _LOGGER.debug("Received %s (%d bytes)", name, len(data))
            self._events.publish(FileReceived(source=EVENT_SOURCE, name=name, data=data))

    async def _fail(self, request: Request, reason: str, response_code: int | None = None) -> None:
        self._discard_transfer()
        self._events.publish(
            OperationFailed(
                source=EVENT_SOURCE,
                operation=_operation_name(request),
                reason=reason,
                response_code=response_code,
            )
        )
        if request.code in _SESSION_REQUESTS:
            await self._close_transport()

    async def _handle_transport_error(self, error: Exception) -> None:
        _LOGGER.warning("Transport to %s lost: %s", self._address, error)
        request = self._pending
        self._clear_pending()
        self._discard_transfer()
        if request is not None:
            self._events.publish(
                OperationFailed(
                    source=EVENT_SOURCE,
                    operation=_operation_name(request),
                    reason=str(error),
                )
            )
        await self._close_transport()

    async def _close_transport(self) -> None:
        await self._connection.disconnect()
        self._obex_connection_id = None
        self._address = None
        self._update_state(SessionState.DISCONNECTED)

    def _update_state(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state
        _LOGGER.debug("State %s -> %s", old_state.name, new_state.name)
        self._events.publish(
            StateChanged(source=EVENT_SOURCE, old_state=old_state, new_state=new_state)
        )
