"""Reassembly of OBEX packets from an RFCOMM byte stream."""

from __future__ import annotations

from ..exceptions import ProtocolError
from .utils import bytes_to_length

PACKET_PREFIX_SIZE = 3  # [code:1][length:2]


class PacketAssembler:
    """Splits a byte stream into whole OBEX packets.

    RFCOMM is a stream transport: a single receive may hold part of a
    packet or several packets. Each packet carries its own length in bytes
    1-2, which is used to find packet boundaries.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[bytes]:
        """Add received bytes and return every packet completed by them.

        Raises:
            ProtocolError: If a packet declares a length shorter than its prefix
        """
        self._buffer.extend(data)
        packets: list[bytes] = []

        while len(self._buffer) >= PACKET_PREFIX_SIZE:
            length = bytes_to_length(self._buffer[1:3])
            if length < PACKET_PREFIX_SIZE:
                self._buffer.clear()
                raise ProtocolError(f"Invalid packet length: {length}")
            if len(self._buffer) < length:
                break
            packets.append(bytes(self._buffer[:length]))
            del self._buffer[:length]

        return packets

    def reset(self) -> None:
        """Drop any partial packet."""
        self._buffer.clear()

    @property
    def pending_bytes(self) -> int:
        """Number of buffered bytes not yet forming a whole packet."""
        return len(self._buffer)
