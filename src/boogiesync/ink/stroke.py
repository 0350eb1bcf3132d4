"""Segmentation of digitizer samples into ink strokes."""

from __future__ import annotations

import logging
import math

from ..models.capture import CaptureReport, PathSegment
from ..models.enums import StrokeState
from .dynamics import DynamicFilter, apply_filter, set_filter_position, set_last_filter
from .line_width import LineWidthModel

_LOGGER = logging.getLogger(__name__)

DISTANCE_THRESHOLD_SQUARED = 10 * 10
CONVERGENCE_ITERATIONS = 4


class StrokeFilter:
    """Turns a stream of capture reports into line segments.

    A segment is emitted each time the filtered pen position has moved at
    least 10 digitizer units from the end of the previous segment. When the
    pen lifts, the last sample is fed to the filter a few more times so the
    stroke converges on the pen-up point.

    Usage:
        stroke_filter = StrokeFilter()
        for report in reports:
            for segment in stroke_filter.filter_report(report):
                draw(segment)
    """

    def __init__(self) -> None:
        self.state = StrokeState.NO_POINTS
        self.filter = DynamicFilter()
        self.line_width = LineWidthModel()
        self._last_report: CaptureReport | None = None

    def reset(self) -> None:
        """Abandon the current trace."""
        self.state = StrokeState.NO_POINTS
        self.filter = DynamicFilter()
        self.line_width.reset()
        self._last_report = None

    def filter_report(self, report: CaptureReport) -> list[PathSegment]:
        """Process one sample and return the segments it completes."""
        paths: list[PathSegment] = []

        if self.state == StrokeState.NO_POINTS:
            if report.is_pen_down:
                self.state = StrokeState.ONE_POINT
                set_filter_position(self.filter, report)
                self.line_width.reset()

        elif self.state == StrokeState.ONE_POINT:
            if report.is_pen_down:
                if self._advance(report, paths):
                    self.state = StrokeState.MULTIPLE_POINTS
            else:
                # Single contact point: speed is unknown
                self.state = StrokeState.NO_POINTS
                lw = self.line_width.compute(-1.0, self.filter.current.pressure)
                paths.append(self._segment(lw))

        elif self.state == StrokeState.MULTIPLE_POINTS:
            if report.is_pen_down:
                self._advance(report, paths)
            else:
                self.state = StrokeState.NO_POINTS
                self._converge(paths)

        self._last_report = report
        return paths

    def _advance(self, report: CaptureReport, paths: list[PathSegment]) -> bool:
        dist_squared = apply_filter(self.filter, report)
        if dist_squared < DISTANCE_THRESHOLD_SQUARED:
            return False

        velocity = math.sqrt(dist_squared) / self.filter.time
        pressure = (self.filter.last.pressure + self.filter.current.pressure) / 2
        lw = self.line_width.compute(velocity, pressure)
        paths.append(self._segment(lw))
        set_last_filter(self.filter)
        return True

    def _converge(self, paths: list[PathSegment]) -> None:
        # Line width uses the pen-up velocity for the whole tail
        velocity = math.hypot(self.filter.velocity.x, self.filter.velocity.y)

        for _ in range(CONVERGENCE_ITERATIONS):
            dist_squared = apply_filter(self.filter, self._last_report)
            if dist_squared >= DISTANCE_THRESHOLD_SQUARED:
                pressure = (self.filter.last.pressure + self.filter.current.pressure) / 2
                lw = self.line_width.compute(velocity, pressure)
                paths.append(self._segment(lw))
                set_last_filter(self.filter)

        _LOGGER.debug("Trace ended at (%d, %d)", self.filter.current.x, self.filter.current.y)

    def _segment(self, line_width: float) -> PathSegment:
        return PathSegment(
            x1=self.filter.last.x,
            y1=self.filter.last.y,
            x2=self.filter.current.x,
            y2=self.filter.current.y,
            line_width=line_width,
        )
