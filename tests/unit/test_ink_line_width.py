"""Test the pressure/speed line width model."""

import pytest

from boogiesync.ink import LineWidthModel, interpolate_line_width
from boogiesync.ink.line_width import (
    DISTANCES,
    LINE_WIDTHS,
    MAX_INITIAL_LINE_WIDTH,
    PRESSURES,
    mass_to_pressure,
    mm_to_digitizer,
    velocity_to_distance,
)


class TestConversions:
    """Test unit conversions used to build the table."""

    def test_velocity_to_distance(self):
        # 75 mm/s over one 6.924 ms sample interval
        assert velocity_to_distance(75.0) == pytest.approx(51.93)

    def test_mm_to_digitizer(self):
        assert mm_to_digitizer(1.0) == pytest.approx(75.0)

    def test_mass_to_pressure(self):
        assert mass_to_pressure(600.0) == pytest.approx(886.418, abs=1e-3)

    def test_table_shape(self):
        assert len(PRESSURES) == 14
        assert len(DISTANCES) == 6
        assert all(len(row) == len(PRESSURES) for row in LINE_WIDTHS)
        assert list(DISTANCES) == sorted(DISTANCES)
        assert list(PRESSURES) == sorted(PRESSURES)


class TestInterpolateLineWidth:
    """Test bilinear table lookup."""

    def test_table_corner(self):
        assert interpolate_line_width(DISTANCES[0], PRESSURES[0]) == pytest.approx(54.0)

    def test_table_points(self):
        assert interpolate_line_width(DISTANCES[3], PRESSURES[5]) == pytest.approx(
            LINE_WIDTHS[3][5]
        )
        assert interpolate_line_width(DISTANCES[-1], PRESSURES[-1]) == pytest.approx(
            LINE_WIDTHS[-1][-1]
        )

    def test_midpoint_in_pressure(self):
        pressure = (PRESSURES[0] + PRESSURES[1]) / 2
        expected = (LINE_WIDTHS[0][0] + LINE_WIDTHS[0][1]) / 2

        assert interpolate_line_width(DISTANCES[0], pressure) == pytest.approx(expected)

    def test_midpoint_in_speed(self):
        distance = (DISTANCES[1] + DISTANCES[2]) / 2
        expected = (LINE_WIDTHS[1][0] + LINE_WIDTHS[2][0]) / 2

        assert interpolate_line_width(distance, PRESSURES[0]) == pytest.approx(expected)

    def test_inputs_clamped(self):
        assert interpolate_line_width(0.0, 0.0) == pytest.approx(LINE_WIDTHS[0][0])
        assert interpolate_line_width(1e6, 1e6) == pytest.approx(LINE_WIDTHS[-1][-1])

    def test_faster_strokes_are_thinner(self):
        slow = interpolate_line_width(DISTANCES[1], PRESSURES[6])
        fast = interpolate_line_width(DISTANCES[4], PRESSURES[6])
        assert fast < slow

    def test_harder_strokes_are_wider(self):
        light = interpolate_line_width(DISTANCES[2], PRESSURES[2])
        hard = interpolate_line_width(DISTANCES[2], PRESSURES[10])
        assert hard > light


class TestLineWidthModel:
    """Test smoothing across consecutive segments."""

    def test_single_point_uses_default_speed(self):
        model = LineWidthModel()

        # First width equals the raw width when the seed is below the cap
        assert model.compute(-1.0, PRESSURES[0]) == pytest.approx(LINE_WIDTHS[3][0])

    def test_first_width_seed_is_capped(self):
        model = LineWidthModel()
        distance = DISTANCES[0]
        raw = LINE_WIDTHS[0][0]
        cap = MAX_INITIAL_LINE_WIDTH
        expected = (2 * distance * raw + cap * cap) / (2 * distance + cap)

        assert raw > cap
        assert model.compute(distance, PRESSURES[0]) == pytest.approx(expected)

    def test_smoothing_uses_previous_width(self):
        model = LineWidthModel()
        first = model.compute(DISTANCES[3], PRESSURES[4])
        raw = interpolate_line_width(DISTANCES[1], PRESSURES[4])
        expected = (2 * DISTANCES[1] * raw + first * first) / (2 * DISTANCES[1] + first)

        assert model.compute(DISTANCES[1], PRESSURES[4]) == pytest.approx(expected)
        assert model.old_line_width == pytest.approx(expected)

    def test_reset(self):
        model = LineWidthModel()
        model.compute(DISTANCES[2], PRESSURES[2])

        model.reset()

        assert model.old_line_width == -1.0
