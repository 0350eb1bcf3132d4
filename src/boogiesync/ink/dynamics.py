"""Fixed-point dynamic filter for digitizer samples.

The filter models the pen tip as a mass pulled towards each raw sample by a
proportional-derivative controller, which smooths digitizer jitter. All
arithmetic is integer with 13 fractional bits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

# Controller gains, including mass and sample time (K*T/mass), scaled by 2**13
KPP = 1229  # 1229/8192 ~= 0.15
KDD = 4915  # 4915/8192 ~= 0.6
FIXED_POINT_SHIFT = 13

MAX_TIME = 255


class Sample(Protocol):
    x: int
    y: int
    pressure: int


@dataclass
class Coordinate:
    x: int = 0
    y: int = 0
    pressure: int = 0


@dataclass
class DynamicFilter:
    """Filter state.

    Attributes:
        last: Position of the last emitted segment end
        current: Filtered position
        velocity: Filtered velocity per sample
        time: Samples since the last emitted segment (saturates at 255)
    """

    last: Coordinate = field(default_factory=Coordinate)
    current: Coordinate = field(default_factory=Coordinate)
    velocity: Coordinate = field(default_factory=Coordinate)
    time: int = 0


def _step(position: int, velocity: int, target: int) -> tuple[int, int]:
    # 8192 x acceleration
    acceleration = KPP * (target - position) - KDD * velocity
    position += velocity
    velocity = ((velocity << FIXED_POINT_SHIFT) + acceleration) >> FIXED_POINT_SHIFT
    return position, velocity


def apply_filter(dynamic_filter: DynamicFilter, sample: Sample) -> int:
    """Advance the filter towards sample by one step.

    Returns:
        Squared distance of the filtered position from the last emitted point
    """
    if dynamic_filter.time < MAX_TIME:
        dynamic_filter.time += 1

    current = dynamic_filter.current
    velocity = dynamic_filter.velocity
    current.x, velocity.x = _step(current.x, velocity.x, sample.x)
    current.y, velocity.y = _step(current.y, velocity.y, sample.y)
    current.pressure, velocity.pressure = _step(
        current.pressure, velocity.pressure, sample.pressure
    )

    dx = current.x - dynamic_filter.last.x
    dy = current.y - dynamic_filter.last.y
    return dx * dx + dy * dy


def set_filter_position(dynamic_filter: DynamicFilter, sample: Sample) -> None:
    """Start a new trace at sample with zero velocity."""
    dynamic_filter.last = Coordinate(sample.x, sample.y, sample.pressure)
    dynamic_filter.current = Coordinate(sample.x, sample.y, sample.pressure)
    dynamic_filter.velocity = Coordinate()
    dynamic_filter.time = 0


def set_last_filter(dynamic_filter: DynamicFilter) -> None:
    """Record that a segment ending at the current position was emitted."""
    current = dynamic_filter.current
    dynamic_filter.last = Coordinate(current.x, current.y, current.pressure)
    dynamic_filter.time = 0
