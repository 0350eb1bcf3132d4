"""Digitizer capture reports and the ink segments derived from them."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ..exceptions import InvalidResponseError

# Flag bits in byte 6 of a capture report
TSW_FLAG = 0x01  # Tip switch
RDY_FLAG = 0x01 << 2  # Stylus in range and position valid
PEN_DOWN_FLAGS = RDY_FLAG | TSW_FLAG

CAPTURE_REPORT_SIZE = 7


@dataclass(frozen=True, slots=True)
class CaptureReport:
    """One raw digitizer sample.

    Wire format (7 bytes):
    - [0-1]: x, little-endian uint16
    - [2-3]: y, little-endian uint16
    - [4-5]: pressure, little-endian uint16
    - [6]: flags (TSW, RDY, ...)
    """

    x: int
    y: int
    pressure: int
    flags: int

    @classmethod
    def from_bytes(cls, data: bytes) -> CaptureReport:
        """Decode a capture input report (report id already stripped)."""
        if len(data) < CAPTURE_REPORT_SIZE:
            raise InvalidResponseError(
                f"Capture report too short: {len(data)} bytes (need {CAPTURE_REPORT_SIZE})"
            )
        x, y, pressure, flags = struct.unpack_from("<HHHB", data)
        return cls(x=x, y=y, pressure=pressure, flags=flags)

    @property
    def is_pen_down(self) -> bool:
        """True when the stylus touches the surface with a valid position."""
        return (self.flags & PEN_DOWN_FLAGS) == PEN_DOWN_FLAGS


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A single line piece of a stroke, in digitizer units."""

    x1: int
    y1: int
    x2: int
    y2: int
    line_width: float

    @property
    def is_dot(self) -> bool:
        return self.x1 == self.x2 and self.y1 == self.y2
