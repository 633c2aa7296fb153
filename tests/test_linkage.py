"""
Tests for rack-and-pinion inference from two endpoint motions.
"""

import math
import pytest

from meshkin.calculator.linkage import (
    GEAR_ORIENTATION,
    RACK_ORIENTATION,
    classify_motions,
    interpolate_pose,
    linkage,
    motion_deltas,
    synthesize_idler,
)
from meshkin.enums import PartKind
from meshkin.errors import AmbiguousMotionError, DegenerateLinkageError, InvalidParameterError
from meshkin.io.models import MotionDescriptor, coord


class TestPitchRadiusInference:
    """pitch radius = |translation / radians(rotation)|"""

    def test_slider_and_spinner(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        assert result.pitch_radius == pytest.approx(4.583662, abs=1e-6)
        assert result.translation.axis == "y"
        assert result.translation.delta == pytest.approx(4.0)
        assert result.rotation.axis == "rotZ"
        assert result.rotation.delta == pytest.approx(50.0)

    def test_classification(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        assert result.classification.translation_source == "motionA"
        assert result.classification.rotation_source == "motionB"

    def test_argument_order_only_swaps_labels(self, slider_and_spinner):
        motion_a, motion_b = slider_and_spinner
        forward = linkage(motion_a, motion_b)
        backward = linkage(motion_b, motion_a)
        assert backward.pitch_radius == forward.pitch_radius
        assert backward.classification.translation_source == "motionB"
        assert backward.classification.rotation_source == "motionA"
        assert [p.name for p in backward.assembly] == [p.name for p in forward.assembly]

    def test_absolute_rotation_offset_is_irrelevant(self, slider_and_spinner):
        """Only final - initial matters, not where the rotation starts."""
        motion_a, motion_b = slider_and_spinner
        offset_b = {"initial": coord(10, 0, 0, 0, 0, 120), "final": coord(10, 0, 0, 0, 0, 170)}
        assert linkage(motion_a, offset_b).pitch_radius == pytest.approx(linkage(motion_a, motion_b).pitch_radius)

    def test_multi_turn_rotation_not_wrapped(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(40 * math.pi, 0, 0)}
        motion_b = {"initial": coord(0, 10, 0), "final": coord(0, 10, 0, 0, 0, 720)}
        result = linkage(motion_a, motion_b)
        assert result.rotation.delta == 720.0
        assert result.pitch_radius == pytest.approx(10.0)

    def test_negative_deltas_give_positive_radius(self):
        motion_a = {"initial": coord(0, 2, 0), "final": coord(0, -2, 0)}
        motion_b = {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)}
        result = linkage(motion_a, motion_b)
        assert result.translation.delta == pytest.approx(-4.0)
        assert result.pitch_radius == pytest.approx(4.583662, abs=1e-6)

    def test_dominant_axis_tie_goes_to_first(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(3, -3, 0)}
        motion_b = {"initial": coord(0, 0, 0), "final": coord(0, 0, 0, 0, 0, 90)}
        result = linkage(motion_a, motion_b)
        assert result.translation.axis == "x"
        assert result.translation.delta == 3.0

    def test_short_poses_accepted(self):
        motion_a = {"initial": [0, 0, 0], "final": [5, 0, 0]}
        motion_b = {"initial": [0, 0, 0, 0, 0, 0], "final": [0, 0, 0, 0, 90, 0]}
        result = linkage(motion_a, motion_b)
        assert result.rotation.axis == "rotY"

    def test_motion_descriptor_input(self, slider_and_spinner):
        motion_a, motion_b = slider_and_spinner
        result = linkage(MotionDescriptor(**motion_a), MotionDescriptor(**motion_b))
        assert result.pitch_radius == pytest.approx(4.583662, abs=1e-6)


class TestRotationNoise:
    """A sliding body may carry incidental rotation; roles follow which motion dominates."""

    def test_noisy_rack_still_slides(self):
        motion_a = {"initial": coord(0, -2, 0), "final": coord(0, 2, 0, 0, 0, 0.001)}
        motion_b = {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)}
        result = linkage(motion_a, motion_b)
        assert result.classification.translation_source == "motionA"
        assert result.rotation.delta == 50.0
        assert result.pitch_radius == pytest.approx(4.583662, abs=1e-6)

    def test_noisy_rack_in_either_slot(self):
        motion_a = {"initial": coord(0, -2, 0, 0.0005, 0, 0), "final": coord(0, 2, 0, 0, 0, -0.001)}
        motion_b = {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)}
        result = linkage(motion_b, motion_a)
        assert result.classification.translation_source == "motionB"
        assert result.translation.axis == "y"

    def test_comparable_rotation_is_ambiguous(self):
        """A body that turns as much as it slides is not a rack."""
        motion_a = {"initial": coord(0, 0, 0), "final": coord(4, 0, 0, 0, 0, 5)}
        motion_b = {"initial": coord(0, 10, 0), "final": coord(0, 10, 0, 0, 0, 50)}
        with pytest.raises(AmbiguousMotionError):
            linkage(motion_a, motion_b)

    def test_two_noisy_translations_are_ambiguous(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(5, 0, 0, 0, 0, 0.001)}
        motion_b = {"initial": coord(0, 0, 0), "final": coord(0, 5, 0, 0.001, 0, 0)}
        with pytest.raises(AmbiguousMotionError):
            linkage(motion_a, motion_b)

    def test_dominance_ratio(self):
        sliding = MotionDescriptor(initial=coord(0, 0, 0), final=coord(10, 0, 0, 0, 0, 0.5))
        turning = MotionDescriptor(initial=coord(0, 0, 0), final=coord(0, 0, 0, 0, 0, 90))
        # At the 10mm stock radius 0.5 degrees rolls 0.087mm, about 0.9% of the travel
        assert classify_motions(sliding, turning).translation_source == "motionA"
        with pytest.raises(AmbiguousMotionError):
            classify_motions(sliding, turning, dominance_ratio=0.005)


class TestAssembly:
    """Stock pair when the radius matches, compound idler otherwise."""

    def test_stock_radius_gives_two_parts(self, stock_radius_motions):
        result = linkage(*stock_radius_motions)
        assert result.pitch_radius == pytest.approx(10.0)
        assert [p.name for p in result.assembly] == ["rack", "pinion"]
        assert not result.uses_idler
        rack, pinion = result.assembly
        assert rack.kind == PartKind.RACK
        assert pinion.kind == PartKind.GEAR
        assert rack.mesh_with == "pinion"
        assert pinion.mesh_with == "rack"

    def test_mismatched_radius_inserts_idler(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        assert [p.name for p in result.assembly] == ["rack", "idler", "pinion"]
        assert result.uses_idler

    def test_idler_has_inferred_radius(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        idler = result.assembly[1]
        assert idler.params.module * idler.params.teeth / 2 == pytest.approx(result.pitch_radius)

    def test_rack_meshes_idler_module(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        rack, idler, _ = result.assembly
        assert rack.params.module == idler.params.module
        assert rack.mesh_with == "idler"

    def test_pinion_shares_idler_shaft(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        _, idler, pinion = result.assembly
        assert idler.shaft_with == "pinion"
        assert pinion.shaft_with == "idler"
        # Stacked along the rotation axis (z), half of each thickness apart
        offset = (idler.params.thickness + pinion.params.thickness) / 2
        assert pinion.pose[2] == pytest.approx(idler.pose[2] + offset)
        assert pinion.pose[:2] == idler.pose[:2]

    def test_radius_tolerance_is_a_parameter(self, slider_and_spinner):
        result = linkage(*slider_and_spinner, radius_tolerance_mm=6.0)
        assert [p.name for p in result.assembly] == ["rack", "pinion"]
        assert result.radius_tolerance_mm == 6.0

    def test_stock_pitch_radius_reported(self, slider_and_spinner):
        assert linkage(*slider_and_spinner).stock_pitch_radius == 10.0

    def test_rack_long_enough_for_travel(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(200, 0, 0)}
        motion_b = {"initial": coord(0, 0, 0), "final": coord(0, 0, 0, 0, 0, 1146)}
        result = linkage(motion_a, motion_b)
        rack = result.assembly[0]
        assert rack.params.teeth_number * rack.params.module * math.pi > 200

    def test_orientations_follow_axes(self, slider_and_spinner):
        result = linkage(*slider_and_spinner)
        rack = result.assembly[0]
        assert rack.orientation == RACK_ORIENTATION["y"]
        for gear in result.assembly[1:]:
            assert gear.orientation == GEAR_ORIENTATION["rotZ"]


class TestPoses:
    """Poses interpolate affinely and include the library gear phase."""

    def test_rack_at_start(self, slider_and_spinner):
        rack = linkage(*slider_and_spinner, progress=0.0).assembly[0]
        assert rack.pose == coord(0, -2, 0)

    def test_rack_at_midpoint(self, slider_and_spinner):
        rack = linkage(*slider_and_spinner, progress=0.5).assembly[0]
        assert rack.pose == pytest.approx(coord(0, 0, 0))

    def test_rack_at_end(self, slider_and_spinner):
        rack = linkage(*slider_and_spinner, progress=1.0).assembly[0]
        assert rack.pose == coord(0, 2, 0)

    def test_default_progress_is_end(self, slider_and_spinner):
        assert linkage(*slider_and_spinner) == linkage(*slider_and_spinner, progress=1.0)

    def test_pinion_spin_includes_phase_offset(self, stock_radius_motions):
        pinion = linkage(*stock_radius_motions, progress=0.0).assembly[1]
        assert pinion.phase_offset == -4.5
        assert pinion.pose[5] == pytest.approx(-4.5)

    def test_pinion_spin_at_end(self, stock_radius_motions):
        pinion = linkage(*stock_radius_motions).assembly[1]
        assert pinion.pose[5] == pytest.approx(180.0 - 4.5)

    def test_idler_phase_from_its_teeth(self, slider_and_spinner):
        idler = linkage(*slider_and_spinner, progress=0.0).assembly[1]
        assert idler.phase_offset == pytest.approx(-90.0 / idler.params.teeth)

    def test_rack_has_no_phase_offset(self, slider_and_spinner):
        assert linkage(*slider_and_spinner).assembly[0].phase_offset == 0.0

    def test_interpolate_pose(self):
        pose = interpolate_pose(coord(0, 0, 0), coord(10, 20, 30, 0, 0, 90), 0.25)
        assert pose == pytest.approx((2.5, 5.0, 7.5, 0.0, 0.0, 22.5))


class TestLinkageErrors:
    """Structured errors for motions that cannot form a rack and pinion."""

    def test_two_translations_are_ambiguous(self):
        motion = {"initial": coord(0, 0, 0), "final": coord(5, 0, 0)}
        with pytest.raises(AmbiguousMotionError) as exc_info:
            linkage(motion, motion)
        assert exc_info.value.error_type == "AmbiguousMotion"

    def test_two_rotating_bodies_are_ambiguous(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(5, 0, 0, 0, 0, 30)}
        motion_b = {"initial": coord(0, 0, 0), "final": coord(0, 0, 0, 0, 0, 30)}
        with pytest.raises(AmbiguousMotionError):
            linkage(motion_a, motion_b)

    def test_nothing_moves(self):
        still = {"initial": coord(1, 2, 3), "final": coord(1, 2, 3)}
        with pytest.raises(AmbiguousMotionError):
            linkage(still, still)

    def test_still_partner_is_degenerate(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(5, 0, 0)}
        still = {"initial": coord(0, 0, 0), "final": coord(0, 0, 0)}
        with pytest.raises(DegenerateLinkageError) as exc_info:
            linkage(motion_a, still)
        assert exc_info.value.field == "motionB"
        assert exc_info.value.error_type == "DegenerateLinkage"

    def test_negligible_rotation_is_degenerate(self):
        motion_a = {"initial": coord(0, 0, 0), "final": coord(5, 0, 0)}
        motion_b = {"initial": coord(0, 0, 0), "final": coord(0, 0, 0, 0, 0, 1e-9)}
        with pytest.raises(DegenerateLinkageError):
            linkage(motion_a, motion_b)

    def test_tiny_turn_is_degenerate(self):
        """A turn just above the rotation epsilon would need an absurd idler."""
        motion_a = {"initial": coord(0, -2, 0), "final": coord(0, 2, 0)}
        motion_b = {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 1e-5)}
        with pytest.raises(DegenerateLinkageError) as exc_info:
            linkage(motion_a, motion_b)
        assert exc_info.value.field == "motionB"

    def test_rotation_epsilon_is_a_parameter(self, slider_and_spinner):
        with pytest.raises(DegenerateLinkageError) as exc_info:
            linkage(*slider_and_spinner, rotation_epsilon_deg=60.0)
        assert exc_info.value.field == "motionB"

    def test_linear_epsilon_is_a_parameter(self, slider_and_spinner):
        with pytest.raises(AmbiguousMotionError):
            linkage(*slider_and_spinner, linear_epsilon_mm=5.0)

    @pytest.mark.parametrize("name,field", [
        ("linear_epsilon_mm", "linearEpsilonMm"),
        ("rotation_epsilon_deg", "rotationEpsilonDeg"),
    ])
    def test_negative_epsilon(self, slider_and_spinner, name, field):
        with pytest.raises(InvalidParameterError) as exc_info:
            linkage(*slider_and_spinner, **{name: -1.0})
        assert exc_info.value.field == field

    @pytest.mark.parametrize("progress", [-0.1, 1.5, float("nan")])
    def test_progress_out_of_range(self, slider_and_spinner, progress):
        with pytest.raises(InvalidParameterError) as exc_info:
            linkage(*slider_and_spinner, progress=progress)
        assert exc_info.value.field == "progress"

    def test_malformed_pose(self, slider_and_spinner):
        _, motion_b = slider_and_spinner
        bad = {"initial": [0, 0, 0, 0], "final": [1, 0, 0]}
        with pytest.raises(InvalidParameterError) as exc_info:
            linkage(bad, motion_b)
        assert exc_info.value.field == "motionA"

    def test_non_finite_pose(self, slider_and_spinner):
        _, motion_b = slider_and_spinner
        bad = {"initial": coord(0, 0, 0), "final": coord(float("inf"), 0, 0)}
        with pytest.raises(InvalidParameterError) as exc_info:
            linkage(bad, motion_b)
        assert exc_info.value.field == "motionA"


class TestHelpers:
    def test_motion_deltas(self):
        motion = MotionDescriptor(initial=coord(1, 2, 3, 10, 20, 30), final=coord(2, 2, 1, 10, 20, 400))
        linear, rotation = motion_deltas(motion)
        assert linear == (1.0, 0.0, -2.0)
        assert rotation == (0.0, 0.0, 370.0)

    def test_classify_motions(self, slider_and_spinner):
        motion_a, motion_b = (MotionDescriptor(**m) for m in slider_and_spinner)
        classification = classify_motions(motion_b, motion_a)
        assert classification.translation_source == "motionB"

    def test_synthesize_idler_keeps_radius(self):
        idler = synthesize_idler(4.583662)
        assert idler.teeth == 9
        assert idler.module * idler.teeth / 2 == pytest.approx(4.583662)

    def test_synthesize_idler_minimum_teeth(self):
        idler = synthesize_idler(2.0)
        assert idler.teeth == 8
        assert idler.module == pytest.approx(0.5)

    def test_synthesize_idler_teeth_limit(self):
        with pytest.raises(DegenerateLinkageError) as exc_info:
            synthesize_idler(600.0)
        assert exc_info.value.field == "pitchRadius"
