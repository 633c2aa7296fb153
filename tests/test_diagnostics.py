"""
Tests for rack-and-pinion animation diagnostics.
"""

import math
import pytest

from meshkin.calculator.diagnostics import (
    USAGE_NOTE,
    apply_phase_correction,
    clamp_samples,
    diagnose,
)
from meshkin.calculator.phase import gear_phase_metadata
from meshkin.calculator.validation import Severity
from meshkin.enums import PitchAxis
from meshkin.errors import InvalidParameterError
from meshkin.io.models import KinematicModel


def _codes(result):
    return [m.code for m in result.diagnostics]


class TestConsistentAnimation:
    """A full turn rolling one pitch circumference, centred at the pitch radius."""

    def test_passes(self, passing_model):
        result = diagnose(passing_model)
        assert result.passed
        assert _codes(result) == ["MESH_CONSISTENT"]
        assert result.diagnostics[0].severity == Severity.INFO

    def test_pitch_model(self, passing_model):
        pm = diagnose(passing_model).pitch_model
        assert pm.pitch_radius == 10.0
        assert pm.circular_pitch == pytest.approx(math.pi)
        assert pm.pitch_circumference == pytest.approx(20 * math.pi)

    def test_no_residuals(self, passing_model):
        result = diagnose(passing_model)
        assert result.radial_check.expected_center_distance == 10.0
        assert result.radial_check.residual == 0.0
        assert result.kinematic_check.translation_residual == 0.0
        assert result.phase.max_abs_phase_residual == 0.0

    def test_deterministic(self, passing_model):
        assert diagnose(passing_model) == diagnose(passing_model)

    def test_usage_note(self, passing_model):
        result = diagnose(passing_model)
        assert result.usage_note == USAGE_NOTE
        assert "recommendedAbsolutePhaseShiftMm" in result.usage_note
        assert "expectedRackXAtProgress0" in result.usage_note
        assert "not a rack start position" in result.usage_note


class TestRadialCheck:
    """Too close is a risk; too far is only a gap."""

    def test_gear_too_close(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"gear_center_axis_position": 9.0}))
        assert result.radial_check.has_radial_intersection_risk
        assert result.radial_check.residual == pytest.approx(-1.0)
        assert not result.passed
        assert "RADIAL_INTERSECTION_RISK" in _codes(result)

    def test_gear_too_far_is_not_a_risk(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"gear_center_axis_position": 11.0}))
        assert not result.radial_check.has_radial_intersection_risk
        assert result.passed
        assert "RADIAL_GAP" in _codes(result)

    def test_distance_is_absolute(self, passing_model):
        """A gear on the negative side of the rack is measured the same way."""
        result = diagnose(passing_model.model_copy(update={"gear_center_axis_position": -10.0}))
        assert result.radial_check.actual_center_distance == 10.0
        assert result.passed

    def test_mesh_gap_extends_expected_distance(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"mesh_gap": 0.5}))
        assert result.radial_check.expected_center_distance == pytest.approx(10.5)
        assert result.radial_check.has_radial_intersection_risk

    def test_pitch_axis_reported(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"pitch_axis": "x"}))
        assert result.radial_check.pitch_axis == PitchAxis.X


class TestKinematicCheck:
    """Translation rate must match the distance rolled at the rotation rate."""

    def test_drift(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"rack_translation_mm_per_progress": 60.0}))
        kc = result.kinematic_check
        assert kc.has_kinematic_drift
        assert kc.expected_translation_mm_per_progress == pytest.approx(20 * math.pi)
        assert kc.translation_residual == pytest.approx(60.0 - 20 * math.pi)
        assert "KINEMATIC_DRIFT" in _codes(result)
        assert not result.passed

    def test_drift_is_caught_by_sampling(self, passing_model):
        """A correct start does not hide a phase error that grows with progress."""
        result = diagnose(passing_model.model_copy(update={"rack_translation_mm_per_progress": 60.0}))
        assert result.phase.phase_residual_at_start == 0.0
        assert result.phase.has_phase_misalignment
        assert result.phase.worst_progress == 1.0

    def test_reverse_rotation(self, passing_model):
        result = diagnose(passing_model.model_copy(update={
            "pinion_rotation_deg_per_progress": -360.0,
            "rack_translation_mm_per_progress": -20 * math.pi,
        }))
        assert not result.kinematic_check.has_kinematic_drift


class TestPhaseCheck:
    """Start position against the expected library phase."""

    def test_start_offset(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"rack_x_at_progress0": 0.5}))
        ph = result.phase
        assert ph.phase_residual_at_start == pytest.approx(0.5)
        assert ph.has_phase_misalignment
        assert ph.recommended_additional_phase_shift_mm == pytest.approx(-0.5)
        assert ph.recommended_absolute_phase_shift_mm == pytest.approx(-0.5)
        assert "PHASE_MISALIGNMENT" in _codes(result)

    def test_absolute_shift_includes_user_shift(self, passing_model):
        result = diagnose(passing_model.model_copy(update={
            "user_phase_shift_mm": 1.0,
            "rack_x_at_progress0": 0.25,
        }))
        assert result.phase.expected_rack_x_at_progress0 == 1.0
        assert result.phase.recommended_additional_phase_shift_mm == pytest.approx(0.75)
        assert result.phase.recommended_absolute_phase_shift_mm == pytest.approx(1.75)

    def test_centered_start_uses_library_shift(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"centered_start": True}))
        library = gear_phase_metadata(1.0, 20).recommended_rack_shift_at_start_mm
        assert result.phase.library_phase_shift_mm == library
        assert result.phase.expected_rack_x_at_progress0 == library
        assert result.phase.phase_residual_at_start == pytest.approx(-math.pi / 4)
        assert not result.passed

    def test_worst_progress_first_of_ties(self, passing_model):
        """A constant residual is worst at the first sample."""
        still = passing_model.model_copy(update={
            "pinion_rotation_deg_per_progress": 0.0,
            "rack_translation_mm_per_progress": 0.0,
            "rack_x_at_progress0": 0.5,
        })
        result = diagnose(still)
        assert result.phase.max_abs_phase_residual == 0.5
        assert result.phase.worst_progress == 0.0

    def test_within_tolerance(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"rack_x_at_progress0": 0.005}))
        assert not result.phase.has_phase_misalignment
        assert result.passed

    def test_custom_tolerance(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"rack_x_at_progress0": 0.5, "tolerance": 1.0}))
        assert result.passed
        assert result.tolerance == 1.0

    def test_negative_tolerance_uses_magnitude(self, passing_model):
        result = diagnose(passing_model.model_copy(update={"tolerance": -0.2}))
        assert result.tolerance == 0.2


class TestPhaseCorrection:
    """Applying the recommendation removes the start residual exactly."""

    def test_correction_zeroes_start_residual(self, passing_model):
        model = passing_model.model_copy(update={"centered_start": True})
        corrected = apply_phase_correction(model)
        result = diagnose(corrected)
        assert result.phase.phase_residual_at_start == 0.0
        assert not result.phase.has_phase_misalignment
        assert result.passed

    def test_correction_with_user_shift(self, passing_model):
        model = passing_model.model_copy(update={
            "centered_start": True,
            "user_phase_shift_mm": 1.2,
            "rack_x_at_progress0": -0.7,
        })
        corrected = apply_phase_correction(model)
        assert diagnose(corrected).phase.phase_residual_at_start == 0.0

    def test_correction_is_idempotent(self, passing_model):
        model = passing_model.model_copy(update={"rack_x_at_progress0": 3.0})
        once = apply_phase_correction(model)
        assert apply_phase_correction(once) == once

    def test_correction_accepts_existing_result(self, passing_model):
        model = passing_model.model_copy(update={"rack_x_at_progress0": 3.0})
        result = diagnose(model)
        assert apply_phase_correction(model, result) == apply_phase_correction(model)

    def test_absolute_shift_is_not_a_start_position(self, passing_model):
        """Only the additional shift, added to the start, zeroes the residual."""
        model = passing_model.model_copy(update={"rack_x_at_progress0": 0.3})
        phase = diagnose(model).phase
        assert phase.recommended_absolute_phase_shift_mm == pytest.approx(-0.3)

        misused = model.model_copy(update={"rack_x_at_progress0": phase.recommended_absolute_phase_shift_mm})
        assert diagnose(misused).phase.phase_residual_at_start == pytest.approx(-0.3)

        shifted = model.model_copy(update={
            "rack_x_at_progress0": model.rack_x_at_progress0 + phase.recommended_additional_phase_shift_mm,
        })
        assert diagnose(shifted).phase.phase_residual_at_start == 0.0
        assert shifted == apply_phase_correction(model)

    def test_original_model_unchanged(self, passing_model):
        model = passing_model.model_copy(update={"rack_x_at_progress0": 3.0})
        apply_phase_correction(model)
        assert model.rack_x_at_progress0 == 3.0


class TestSamples:
    """Sample count is clamped to [3, 501]."""

    @pytest.mark.parametrize("requested,used", [(None, 41), (1, 3), (3, 3), (100, 100), (1000, 501)])
    def test_clamp(self, requested, used):
        assert clamp_samples(requested) == used

    def test_clamped_count_is_reported(self, passing_model):
        assert diagnose(passing_model.model_copy(update={"samples": 1})).phase.samples == 3
        assert diagnose(passing_model.model_copy(update={"samples": 1000})).phase.samples == 501


class TestDiagnosticsValidation:
    """Invalid declarations raise InvalidParameterError naming the field."""

    @pytest.mark.parametrize("module", [0.0, -1.0])
    def test_bad_module(self, passing_model_data, module):
        passing_model_data["module"] = module
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "module"

    @pytest.mark.parametrize("teeth", [0, -5])
    def test_bad_teeth(self, passing_model_data, teeth):
        passing_model_data["pinionTeeth"] = teeth
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "pinionTeeth"

    def test_non_finite_rate(self, passing_model_data):
        passing_model_data["pinionRotationDegPerProgress"] = float("nan")
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "pinionRotationDegPerProgress"

    def test_bad_pitch_axis(self, passing_model_data):
        passing_model_data["pitchAxis"] = "z"
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "pitchAxis"

    def test_overflowing_rate_rejected(self, passing_model_data):
        """Large but finite inputs must not turn into inf or NaN in the result."""
        passing_model_data["module"] = 1e300
        passing_model_data["pinionRotationDegPerProgress"] = 1e10
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "pinionRotationDegPerProgress"

    def test_overflowing_residual_rejected(self, passing_model_data):
        passing_model_data["pinionRotationDegPerProgress"] = -1.7e308
        passing_model_data["rackTranslationMmPerProgress"] = 1.7e308
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "rackTranslationMmPerProgress"

    def test_overflowing_start_rejected(self, passing_model_data):
        passing_model_data["rackXAtProgress0"] = 1.7e308
        passing_model_data["userPhaseShiftMm"] = -1.7e308
        with pytest.raises(InvalidParameterError) as exc_info:
            diagnose(KinematicModel.model_validate(passing_model_data))
        assert exc_info.value.field == "rackXAtProgress0"
