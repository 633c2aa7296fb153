"""
Tests for pitch features of gears and racks.
"""

import math
import pytest

from meshkin.calculator.pitch import (
    PitchCircle,
    PitchLine,
    circular_pitch,
    gear_params_from_diameter,
    pitch_features,
    rack_effective_teeth,
)
from meshkin.errors import InvalidParameterError
from meshkin.io.models import RackParams


class TestGearPitchCircle:
    """Pitch circle of a gear: d = m * z."""

    @pytest.mark.parametrize("module,teeth", [(1.0, 20), (2.5, 17), (0.5, 9), (3.0, 1)])
    def test_radius_is_half_module_times_teeth(self, module, teeth):
        circle = pitch_features(module, teeth)
        assert isinstance(circle, PitchCircle)
        assert circle.radius == pytest.approx(module * teeth / 2)
        assert circle.diameter == pytest.approx(module * teeth)
        assert circle.type == "pitch_circle"

    def test_stock_pinion(self):
        """Module 1 with 20 teeth is the 10mm stock pinion."""
        assert pitch_features(1.0, 20).radius == 10.0

    def test_float_teeth_that_are_whole_are_accepted(self):
        assert pitch_features(1.0, 20.0).teeth == 20


class TestRackPitchLine:
    """Pitch line of a rack in its local frame."""

    def test_rack_pitch_line(self):
        line = pitch_features(1.0)
        assert isinstance(line, PitchLine)
        assert line.point == (0.0, 0.0, 0.0)
        assert line.direction == (1.0, 0.0, 0.0)
        assert line.normal == (0.0, 1.0, 0.0)
        assert line.type == "pitch_line"

    def test_circular_pitch(self):
        assert circular_pitch(2.0) == pytest.approx(2 * math.pi)

    def test_length_sets_effective_teeth(self):
        """As many whole teeth as fit in the length."""
        assert rack_effective_teeth(RackParams(module=1.0, length=100.0)) == 31

    def test_short_length_keeps_one_tooth(self):
        assert rack_effective_teeth(RackParams(module=1.0, length=1.0)) == 1

    def test_teeth_number_without_length(self):
        assert rack_effective_teeth(RackParams(module=1.0, teethNumber=12)) == 12

    def test_zero_length_rejected(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            rack_effective_teeth(RackParams(module=1.0, length=0.0))
        assert exc_info.value.field == "length"


class TestPitchValidation:
    """Non-positive or non-finite inputs are InvalidParameter errors."""

    @pytest.mark.parametrize("module", [0.0, -1.0, float("nan"), float("inf")])
    def test_bad_module(self, module):
        with pytest.raises(InvalidParameterError) as exc_info:
            pitch_features(module, 20)
        assert exc_info.value.field == "module"
        assert exc_info.value.error_type == "InvalidParameter"

    @pytest.mark.parametrize("teeth", [0, -3, 2.5])
    def test_bad_teeth(self, teeth):
        with pytest.raises(InvalidParameterError) as exc_info:
            pitch_features(1.0, teeth)
        assert exc_info.value.field == "teeth"

    def test_invalid_parameter_is_value_error(self):
        """Callers catching ValueError still see engine errors."""
        with pytest.raises(ValueError):
            pitch_features(0.0)


class TestDiameterFirstSizing:
    """Pick the tooth count from a requested diameter."""

    def test_twenty_mm_at_module_one(self):
        params = gear_params_from_diameter(20.0)
        assert params.teeth == 20
        assert pitch_features(params.module, params.teeth).radius == 10.0

    def test_module_two(self):
        assert gear_params_from_diameter(20.0, module=2.0).teeth == 10

    def test_rounds_to_nearest_tooth(self):
        assert gear_params_from_diameter(21.4).teeth == 21

    def test_extra_fields_pass_through(self):
        params = gear_params_from_diameter(20.0, thickness=4.0)
        assert params.thickness == 4.0
