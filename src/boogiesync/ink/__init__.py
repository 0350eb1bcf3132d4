"""Digitizer ink processing: dynamic filter, line widths, stroke segmentation."""

from .dynamics import (
    KDD,
    KPP,
    Coordinate,
    DynamicFilter,
    apply_filter,
    set_filter_position,
    set_last_filter,
)
from .line_width import LineWidthModel, interpolate_line_width
from .stroke import DISTANCE_THRESHOLD_SQUARED, StrokeFilter

__all__ = [
    "Coordinate",
    "DISTANCE_THRESHOLD_SQUARED",
    "DynamicFilter",
    "KDD",
    "KPP",
    "LineWidthModel",
    "StrokeFilter",
    "apply_filter",
    "interpolate_line_width",
    "set_filter_position",
    "set_last_filter",
]
