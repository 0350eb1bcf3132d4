"""OBEX header encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from .utils import encode_name, length_to_bytes


class HeaderId(IntEnum):
    """OBEX header identifiers used by Bluetooth FTP."""

    NAME = 0x01
    DESCRIPTION = 0x05
    TYPE = 0x42
    TARGET = 0x46
    BODY = 0x48
    END_OF_BODY = 0x49
    WHO = 0x4A
    LENGTH = 0xC3
    CONNECTION = 0xCB


# Headers with a 4-byte body and no length field
FIXED_LENGTH_HEADERS = frozenset({HeaderId.CONNECTION, HeaderId.LENGTH})
FIXED_HEADER_SIZE = 5
HEADER_PREFIX_SIZE = 3  # [id:1][length:2]


@dataclass(frozen=True)
class Header:
    """A single typed OBEX header.

    The body is stored already encoded. A name is encoded as a
    null-terminated UTF-16BE string, an integer body as 4 big-endian bytes.

    Format:
        CONNECTION/LENGTH: [id:1][body:4]
        others:            [id:1][length:2][body:n]  (length includes prefix)
    """

    id: int
    body: bytes | None = None
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.id in FIXED_LENGTH_HEADERS and len(self.body or b"") != 4:
            raise ValueError(
                f"Header 0x{self.id:02x} body must be exactly 4 bytes, "
                f"got {len(self.body or b'')}"
            )

    @classmethod
    def create(
            cls,
            header_id: int,
            body: bytes | bytearray | int | None = None,
            name: str | None = None,
    ) -> Header:
        """Build a header, normalizing the body.

        Args:
            header_id: Header identifier (see HeaderId)
            body: Raw body bytes, or an int encoded as 4 big-endian bytes
            name: String body, encoded as OBEX Unicode (overrides body)
        """
        if name is not None:
            encoded = encode_name(name)
        elif isinstance(body, int):
            encoded = body.to_bytes(4, byteorder="big")
        elif body is not None:
            encoded = bytes(body)
        else:
            encoded = None
        return cls(id=header_id, body=encoded, name=name)

    @property
    def length(self) -> int:
        """Wire length of the encoded header."""
        if self.id in FIXED_LENGTH_HEADERS:
            return FIXED_HEADER_SIZE
        return HEADER_PREFIX_SIZE + len(self.body or b"")

    def encode(self) -> bytes:
        """Return the wire encoding of this header."""
        if self.id in FIXED_LENGTH_HEADERS:
            return bytes([self.id]) + self.body
        return bytes([self.id]) + length_to_bytes(self.length) + (self.body or b"")
