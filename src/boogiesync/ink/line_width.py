"""Pressure/speed to line width model."""

from __future__ import annotations

from bisect import bisect_left
from typing import Final

TICKS_PER_MM: Final = 100  # Digitizer resolution is 0.01 mm
MS_PER_SAMPLE: Final = 6.924  # 144.425 samples per second
PEN_ANGLE_COS: Final = 0.866  # Stylus held at 30 degrees
SCALE: Final = 0.75  # Recorded lines are drawn sharper than on the device

MAX_INITIAL_LINE_WIDTH: Final = 45.0
DEFAULT_SPEED_MM_S: Final = 75.0  # Used when a trace is a single point


def velocity_to_distance(velocity: float) -> float:
    """Convert mm/s to digitizer units travelled between successive samples."""
    return velocity * TICKS_PER_MM * MS_PER_SAMPLE / 1000


def mm_to_digitizer(mm: float) -> float:
    """Convert a line width in mm to scaled digitizer units."""
    return mm * TICKS_PER_MM * SCALE


def mass_to_pressure(mass: float) -> float:
    """Convert grams normal to the surface to a digitizer pressure reading."""
    return mass * PEN_ANGLE_COS * 1023.0 / 600.0 + 0.5


# Pressure readings for which line widths are tabulated
PRESSURES: Final = tuple(
    mass_to_pressure(grams)
    for grams in (10.0, 25.0, 50.0, 100.0, 150.0, 200.0, 250.0,
                  300.0, 350.0, 400.0, 450.0, 500.0, 550.0, 600.0)
)

# (speed in mm/s, line widths in mm at each of PRESSURES)
_LINE_WIDTH_TABLE_MM: Final = (
    (1.0, (0.720000, 0.800000, 0.908937, 1.108957, 1.266351, 1.388042, 1.462073,
           1.540000, 1.618852, 1.701938, 1.793265, 1.860000, 1.920000, 1.954108)),
    (5.0, (0.490000, 0.530000, 0.614119, 0.758321, 0.868824, 0.910000, 0.942034,
           1.000218, 1.047881, 1.083052, 1.155148, 1.196536, 1.250000, 1.286546)),
    (30.0, (0.300000, 0.340000, 0.387672, 0.493372, 0.565948, 0.620261, 0.673648,
            0.710716, 0.746997, 0.777846, 0.815101, 0.837235, 0.880000, 0.926857)),
    (75.0, (0.290000, 0.295000, 0.320000, 0.374948, 0.422921, 0.473530, 0.508386,
            0.541358, 0.577623, 0.600577, 0.621771, 0.651861, 0.670000, 0.690000)),
    (100.0, (0.280000, 0.290000, 0.302881, 0.338898, 0.387231, 0.433664, 0.452389,
             0.482745, 0.516970, 0.534589, 0.557370, 0.581577, 0.610000, 0.620000)),
    (180.0, (0.250000, 0.260000, 0.280375, 0.311056, 0.362906, 0.390511, 0.414745,
             0.436406, 0.463840, 0.478165, 0.501515, 0.521805, 0.540000, 0.550000)),
)

# Speed expressed as distance between consecutive samples, in digitizer units
DISTANCES: Final = tuple(velocity_to_distance(speed) for speed, _ in _LINE_WIDTH_TABLE_MM)
LINE_WIDTHS: Final = tuple(
    tuple(mm_to_digitizer(mm) for mm in widths) for _, widths in _LINE_WIDTH_TABLE_MM
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def interpolate_line_width(distance: float, pressure: float) -> float:
    """Bilinear lookup of the raw line width, inputs clamped to the table."""
    distance = _clamp(distance, DISTANCES[0], DISTANCES[-1])
    pressure = _clamp(pressure, PRESSURES[0], PRESSURES[-1])

    i = min(bisect_left(DISTANCES, distance, 1), len(DISTANCES) - 1)
    j = min(bisect_left(PRESSURES, pressure, 1), len(PRESSURES) - 1)

    # Interpolate on pressure first, then on speed
    p0, p1 = PRESSURES[j - 1], PRESSURES[j]
    low, high = LINE_WIDTHS[i - 1], LINE_WIDTHS[i]
    lwa = low[j - 1] + (pressure - p0) * (low[j] - low[j - 1]) / (p1 - p0)
    lwb = high[j - 1] + (pressure - p0) * (high[j] - high[j - 1]) / (p1 - p0)

    d0, d1 = DISTANCES[i - 1], DISTANCES[i]
    return lwa + (distance - d0) * (lwb - lwa) / (d1 - d0)


class LineWidthModel:
    """Computes smoothed line widths for consecutive segments of a trace."""

    def __init__(self) -> None:
        self.old_line_width = -1.0

    def reset(self) -> None:
        """Forget the previous width at the start of a new trace."""
        self.old_line_width = -1.0

    def compute(self, velocity: float, pressure: float) -> float:
        """Line width in digitizer units.

        Args:
            velocity: Digitizer units per sample interval, or a negative value
                when the trace was a single point (a mid-level speed is assumed)
            pressure: Digitizer pressure reading
        """
        if velocity < 0:
            distance = velocity_to_distance(DEFAULT_SPEED_MM_S)
        else:
            distance = velocity
        distance = _clamp(distance, DISTANCES[0], DISTANCES[-1])

        lw = interpolate_line_width(distance, pressure)

        # First segment of a trace: seed capped at MAX_INITIAL_LINE_WIDTH
        if self.old_line_width < 0:
            self.old_line_width = min(lw, MAX_INITIAL_LINE_WIDTH)

        old = self.old_line_width
        lw = (2 * distance * lw + old * old) / (2 * distance + old)

        self.old_line_width = lw
        return lw
