"""OBEX response parsing."""

from __future__ import annotations

from enum import IntEnum

from ..exceptions import InvalidResponseError
from .headers import (
    FIXED_HEADER_SIZE,
    FIXED_LENGTH_HEADERS,
    HEADER_PREFIX_SIZE,
    Header,
    HeaderId,
)
from .utils import bytes_to_length


class ResponseCode(IntEnum):
    """OBEX response codes (final bit set)."""

    CONTINUE = 0x90
    SUCCESS = 0xA0
    CREATED = 0xA1
    ACCEPTED = 0xA2
    MULTIPLE_CHOICES = 0xB0
    MOVED_PERMANENTLY = 0xB1
    MOVED_TEMPORARILY = 0xB2
    SEE_OTHER = 0xB3
    NOT_MODIFIED = 0xB4
    USE_PROXY = 0xB5
    BAD_REQUEST = 0xC0
    UNAUTHORIZED = 0xC1
    FORBIDDEN = 0xC3
    NOT_FOUND = 0xC4
    METHOD_NOT_ALLOWED = 0xC5
    NOT_ACCEPTABLE = 0xC6
    PROXY_AUTHENTICATION_REQUIRED = 0xC7
    REQUEST_TIME_OUT = 0xC8
    CONFLICT = 0xC9
    GONE = 0xCA
    LENGTH_REQUIRED = 0xCB
    PRECONDITION_FAILED = 0xCC
    REQUEST_ENTITY_TOO_LARGE = 0xCD
    REQUEST_URL_TOO_LARGE = 0xCE
    UNSUPPORTED_MEDIA_TYPE = 0xCF
    INTERNAL_SERVER_ERROR = 0xD0
    NOT_IMPLEMENTED = 0xD1
    BAD_GATEWAY = 0xD2
    SERVICE_UNAVAILABLE = 0xD3
    GATEWAY_TIMEOUT = 0xD4
    HTTP_VERSION_NOT_SUPPORTED = 0xD5
    DATABASE_FULL = 0xE0
    DATABASE_LOCKED = 0xE1


def describe_response_code(code: int) -> str:
    """Human-readable name of a response code."""
    try:
        return ResponseCode(code).name
    except ValueError:
        return f"0x{code:02x}"


RESPONSE_PREFIX_SIZE = 3  # [code:1][length:2]
CONNECT_FIELDS_SIZE = 4  # [version:1][flags:1][max_size:2]


class Response:
    """A parsed OBEX response.

    Attributes:
        code: Response code byte
        length: Declared packet length
        headers: Parsed headers by id (last one wins)
        version: OBEX version (CONNECT responses only)
        flags: Connect flags (CONNECT responses only)
        maximum_size: Peer's maximum packet size (CONNECT responses only)
    """

    def __init__(
            self,
            code: int,
            length: int,
            headers: dict[int, Header] | None = None,
            version: int | None = None,
            flags: int | None = None,
            maximum_size: int | None = None,
    ):
        self.code = code
        self.length = length
        self.headers: dict[int, Header] = headers or {}
        self.version = version
        self.flags = flags
        self.maximum_size = maximum_size

    def __repr__(self) -> str:
        return (
            f"Response(code={describe_response_code(self.code)}, length={self.length}, "
            f"headers={[f'0x{h:02x}' for h in self.headers]})"
        )

    @classmethod
    def parse(cls, data: bytes, *, connect: bool = False) -> Response:
        """Parse a complete response packet.

        Args:
            data: Raw packet bytes
            connect: True if the response answers a CONNECT request, in which
                case version/flags/max-size fields follow the length

        Raises:
            InvalidResponseError: If the buffer is truncated or malformed
        """
        data = bytes(data)
        if len(data) < RESPONSE_PREFIX_SIZE:
            raise InvalidResponseError(
                f"Response too short: {len(data)} bytes (need at least {RESPONSE_PREFIX_SIZE})"
            )

        code = data[0]
        length = bytes_to_length(data[1:3])
        if length < RESPONSE_PREFIX_SIZE:
            raise InvalidResponseError(f"Invalid declared length: {length}")
        if len(data) < length:
            raise InvalidResponseError(
                f"Response truncated: declared {length} bytes, got {len(data)}"
            )

        response = cls(code=code, length=length)
        if length == RESPONSE_PREFIX_SIZE:
            return response

        index = RESPONSE_PREFIX_SIZE
        if connect:
            if length < index + CONNECT_FIELDS_SIZE:
                raise InvalidResponseError(
                    f"CONNECT response too short: {length} bytes "
                    f"(need at least {index + CONNECT_FIELDS_SIZE})"
                )
            response.version = data[index]
            response.flags = data[index + 1]
            response.maximum_size = bytes_to_length(data[index + 2:index + 4])
            index += CONNECT_FIELDS_SIZE

        while index < length:
            header_id = data[index]

            if header_id in FIXED_LENGTH_HEADERS:
                end = index + FIXED_HEADER_SIZE
                body_start = index + 1
            else:
                if index + HEADER_PREFIX_SIZE > length:
                    raise InvalidResponseError(
                        f"Header 0x{header_id:02x} prefix truncated at offset {index}"
                    )
                header_length = bytes_to_length(data[index + 1:index + 3])
                if header_length < HEADER_PREFIX_SIZE:
                    raise InvalidResponseError(
                        f"Header 0x{header_id:02x} has invalid length {header_length}"
                    )
                end = index + header_length
                body_start = index + HEADER_PREFIX_SIZE

            if end > length:
                raise InvalidResponseError(
                    f"Header 0x{header_id:02x} overruns packet: ends at {end}, length {length}"
                )

            try:
                header_id = HeaderId(header_id)
            except ValueError:
                pass
            response.headers[header_id] = Header(id=header_id, body=data[body_start:end])
            index = end

        return response

    def get_header(self, header_id: HeaderId | int) -> Header | None:
        return self.headers.get(header_id)

    @property
    def connection_id(self) -> bytes | None:
        """Body of the CONNECTION header, if present."""
        header = self.headers.get(HeaderId.CONNECTION)
        return header.body if header else None
