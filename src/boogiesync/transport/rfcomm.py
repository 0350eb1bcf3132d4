"""Bluetooth RFCOMM connection carrying OBEX packets."""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable

from ..exceptions import BluetoothConnectionError, ProtocolError, TransportTimeoutError
from ..protocol import MAXIMUM_PACKET_SIZE, PacketAssembler

_LOGGER = logging.getLogger(__name__)

PacketCallback = Callable[[bytes], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]

# RFCOMM channel of the Sync's OBEX FTP service
DEFAULT_FTP_CHANNEL = 1


class RFCOMMConnection:
    """Manages the RFCOMM socket to a Sync's OBEX FTP service.

    Features:
    - Non-blocking socket driven by the asyncio event loop
    - Receive task that reassembles whole OBEX packets from the stream
    - Packets and errors delivered to callbacks, strictly in arrival order
    """

    def __init__(
            self,
            channel: int = DEFAULT_FTP_CHANNEL,
            timeout: float = 10.0,
            receive_size: int = MAXIMUM_PACKET_SIZE,
    ):
        """Initialize RFCOMM connection manager.

        Args:
            channel: RFCOMM channel of the FTP service (default: 1)
            timeout: Connection timeout in seconds (default: 10)
            receive_size: Maximum bytes per socket read (default: 0xFFDC)
        """
        self.channel = channel
        self.timeout = timeout
        self.receive_size = receive_size
        self.address: str | None = None

        self._socket: socket.socket | None = None
        self._assembler = PacketAssembler()
        self._receive_task: asyncio.Task[None] | None = None

    async def connect(self, address: str) -> None:
        """Open the socket to the device.

        Raises:
            BluetoothConnectionError: If the socket cannot be created or connected
            TransportTimeoutError: If connecting takes longer than timeout
        """
        if self._socket is not None:
            return  # Already connected

        _LOGGER.debug("Connecting to %s on RFCOMM channel %d", address, self.channel)
        try:
            sock = socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)
        except (AttributeError, OSError) as e:
            raise BluetoothConnectionError(f"RFCOMM sockets unavailable: {e}") from e

        sock.setblocking(False)
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(loop.sock_connect(sock, (address, self.channel)), self.timeout)
        except asyncio.TimeoutError as e:
            sock.close()
            raise TransportTimeoutError(f"Connection timeout after {self.timeout}s") from e
        except OSError as e:
            sock.close()
            raise BluetoothConnectionError(f"Failed to connect: {e}") from e

        self._socket = sock
        self.address = address
        self._assembler.reset()
        _LOGGER.debug("Connected to %s", address)

    def start_receiving(self, on_packet: PacketCallback, on_error: ErrorCallback) -> None:
        """Start delivering received packets.

        Args:
            on_packet: Awaited with each complete OBEX packet
            on_error: Awaited once when the connection fails or is closed by the peer
        """
        if self._socket is None:
            raise BluetoothConnectionError("Not connected")
        self._receive_task = asyncio.get_running_loop().create_task(
            self._receive_loop(on_packet, on_error)
        )

    async def _receive_loop(self, on_packet: PacketCallback, on_error: ErrorCallback) -> None:
        loop = asyncio.get_running_loop()
        sock = self._socket
        while True:
            try:
                data = await loop.sock_recv(sock, self.receive_size)
                if not data:
                    raise BluetoothConnectionError("Disconnected by peer")
                packets = self._assembler.feed(data)
            except (OSError, BluetoothConnectionError, ProtocolError) as e:
                _LOGGER.warning("Receive failed on %s: %s", self.address, e)
                self._close_socket()
                await on_error(e if isinstance(e, BluetoothConnectionError)
                               else BluetoothConnectionError(f"Receive failed: {e}"))
                return

            for packet in packets:
                _LOGGER.debug("Received %d byte packet: %s", len(packet), packet[:16].hex())
                await on_packet(packet)
                if self._socket is not sock:
                    return  # Closed while handling the packet

    async def write(self, data: bytes) -> None:
        """Send one packet.

        Raises:
            BluetoothConnectionError: If not connected or the send fails
        """
        if self._socket is None:
            raise BluetoothConnectionError("Not connected")

        _LOGGER.debug("Sending %d byte packet: %s", len(data), data[:16].hex())
        try:
            await asyncio.get_running_loop().sock_sendall(self._socket, data)
        except OSError as e:
            raise BluetoothConnectionError(f"Write failed: {e}") from e

    async def disconnect(self) -> None:
        """Stop receiving and close the socket."""
        task = self._receive_task
        self._receive_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        if self._socket is not None:
            _LOGGER.debug("Disconnecting from %s", self.address)
        self._close_socket()

    def _close_socket(self) -> None:
        if self._socket is None:
            return
        try:
            self._socket.close()
        except OSError as e:
            _LOGGER.warning("Error during disconnect: %s", e)
        finally:
            self._socket = None
            self._assembler.reset()

    @property
    def is_connected(self) -> bool:
        """Check if the socket is open."""
        return self._socket is not None
