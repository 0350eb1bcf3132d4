"""OBEX request assembly."""

from __future__ import annotations

from enum import IntEnum, IntFlag

from .headers import Header, HeaderId
from .utils import length_to_bytes


class RequestCode(IntEnum):
    """OBEX operation codes (final bit set)."""

    CONNECT = 0x80
    DISCONNECT = 0x81
    PUT = 0x82
    GET = 0x83
    SET_PATH = 0x85
    SESSION = 0x87
    ABORT = 0xFF


class RequestFlags(IntFlag):
    """SET_PATH flags."""

    DEFAULT = 0x00
    BACKUP = 0x01
    DONT_CREATE_FOLDER = 0x02


OBEX_VERSION = 0x10  # Implemented OBEX version 1.0
DEFAULT_CONSTANT = 0x00
MAXIMUM_PACKET_SIZE = 0xFFDC  # Largest packet we accept


class Request:
    """An OBEX request: operation code plus an ordered set of headers.

    The wire encoding is derived from the current fields on demand and
    memoized until the next mutation, so a partially built request is never
    observed.

    Format:
        [opcode:1][length:2][CONNECT: version:1 flags:1 max_size:2]
                            [SET_PATH: flags:1 constants:1][headers...]
    """

    def __init__(self, code: RequestCode | int, constants: int | None = None):
        self.code = code
        self.headers: dict[int, Header] = {}
        self.flags = RequestFlags.DEFAULT
        self.constants = constants
        self._data: bytes | None = None

    def __repr__(self) -> str:
        return f"Request(code=0x{self.code:02x}, headers={[f'0x{h:02x}' for h in self.headers]})"

    def add_header(self, header: Header) -> Request:
        """Add a header, replacing any header with the same id."""
        self.headers[header.id] = header
        self._data = None
        return self

    def set_flags(self, flags: int) -> Request:
        """Set the request flags (sent for SET_PATH only)."""
        self.flags = flags
        self._data = None
        return self

    def get_header(self, header_id: HeaderId | int) -> Header | None:
        return self.headers.get(header_id)

    @property
    def length(self) -> int:
        """Total packet length in bytes."""
        return len(self.data)

    @property
    def data(self) -> bytes:
        """Wire encoding of the request."""
        if self._data is None:
            self._data = self._encode()
        return self._data

    def to_bytes(self) -> bytes:
        return self.data

    def _encode(self) -> bytes:
        if self.code == RequestCode.CONNECT:
            fields = bytes([OBEX_VERSION, RequestFlags.DEFAULT]) + length_to_bytes(
                MAXIMUM_PACKET_SIZE
            )
        elif self.code == RequestCode.SET_PATH:
            constants = DEFAULT_CONSTANT if self.constants is None else self.constants
            fields = bytes([self.flags & 0xFF, constants & 0xFF])
        else:
            fields = b""

        body = fields + b"".join(header.encode() for header in self.headers.values())
        length = 3 + len(body)
        if length > 0xFFFF:
            raise ValueError(f"Request too large: {length} bytes (max 65535)")

        return bytes([self.code]) + length_to_bytes(length) + body


# Bluetooth profile UUID for OBEX File Transfer
BLUETOOTH_FTP_UUID = "00001106-0000-1000-8000-00805f9b34fb"

# OBEX FTP target UUID sent with CONNECT
OBEX_FTP_TARGET = bytes.fromhex("F9EC7BC4953C11D2984E525400DC9E09")

# MIME type for folder listings, null-terminated ASCII
FOLDER_LISTING_TYPE = b"x-obex/folder-listing\x00"


def build_connect_request() -> Request:
    """Build CONNECT targeting the folder-browsing service."""
    return Request(RequestCode.CONNECT).add_header(
        Header.create(HeaderId.TARGET, body=OBEX_FTP_TARGET)
    )


def build_disconnect_request(connection_id: bytes) -> Request:
    """Build DISCONNECT for an established OBEX connection."""
    return Request(RequestCode.DISCONNECT).add_header(
        Header.create(HeaderId.CONNECTION, body=connection_id)
    )


def build_list_folder_request(connection_id: bytes) -> Request:
    """Build GET for the listing of the current folder.

    An empty NAME header selects the current folder.
    """
    request = Request(RequestCode.GET)
    request.add_header(Header.create(HeaderId.CONNECTION, body=connection_id))
    request.add_header(Header.create(HeaderId.NAME))
    request.add_header(Header.create(HeaderId.TYPE, body=FOLDER_LISTING_TYPE))
    return request


def build_set_path_request(connection_id: bytes, name: str) -> Request:
    """Build SET_PATH to change folder.

    Args:
        connection_id: OBEX connection id
        name: Folder name, '' for the root folder or '..' for the parent
    """
    request = Request(RequestCode.SET_PATH, constants=DEFAULT_CONSTANT)
    request.add_header(Header.create(HeaderId.CONNECTION, body=connection_id))
    if name == "..":
        request.set_flags(RequestFlags.BACKUP | RequestFlags.DONT_CREATE_FOLDER)
    elif name == "":
        request.set_flags(RequestFlags.DONT_CREATE_FOLDER)
        request.add_header(Header.create(HeaderId.NAME))
    else:
        request.set_flags(RequestFlags.DONT_CREATE_FOLDER)
        request.add_header(Header.create(HeaderId.NAME, name=name))
    return request


def build_get_file_request(connection_id: bytes, name: str) -> Request:
    """Build GET for a file in the current folder."""
    request = Request(RequestCode.GET, constants=DEFAULT_CONSTANT)
    request.add_header(Header.create(HeaderId.CONNECTION, body=connection_id))
    request.add_header(Header.create(HeaderId.NAME, name=name))
    return request


def build_delete_request(connection_id: bytes, name: str) -> Request:
    """Build a delete: PUT with a NAME header and no body."""
    request = Request(RequestCode.PUT, constants=DEFAULT_CONSTANT)
    request.add_header(Header.create(HeaderId.CONNECTION, body=connection_id))
    request.add_header(Header.create(HeaderId.NAME, name=name))
    return request
