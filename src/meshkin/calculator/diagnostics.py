"""
Animation intersection diagnostics for rack-and-pinion animations.

The agent declares how its animation moves the parts (rotation rate, rack
translation rate, start position, centre positions). diagnose() checks that
declaration three ways:

- radial: the gear centre must not sit closer to the rack pitch line than
  pitch radius + gap (further away is only a gap and is not flagged)
- kinematic: the declared translation rate must match the distance the
  pitch circle rolls at the declared rotation rate
- phase: the rack must start where the part libraries expect it, and stay
  there across the whole animation, so teeth land in valleys

and recommends the rack phase shift that fixes a misaligned start.
"""

import logging
from dataclasses import dataclass, field
from math import isfinite, pi
from typing import List, Optional

from ..constants import (
    DIAGNOSTIC_SAMPLES_DEFAULT,
    DIAGNOSTIC_SAMPLES_MAX,
    DIAGNOSTIC_SAMPLES_MIN,
    DIAGNOSTIC_TOLERANCE_MM,
)
from ..enums import PitchAxis
from ..errors import InvalidParameterError
from ..io.models import KinematicModel
from .phase import library_rack_phase_shift_mm
from .validation import (
    Severity,
    ValidationMessage,
    parse_pitch_axis,
    require_finite,
    require_positive,
    require_positive_int,
)

logger = logging.getLogger(__name__)

USAGE_NOTE = (
    "Drive the animation from one progress value p in [0, 1]: rotate the pinion by "
    "pinionRotationDegPerProgress * p degrees and move the rack to "
    "rackXAtProgress0 + rackTranslationMmPerProgress * p along its length. "
    "To fix a phase misalignment, set rackXAtProgress0 to expectedRackXAtProgress0, which is "
    "the same as adding recommendedAdditionalPhaseShiftMm to it. "
    "recommendedAbsolutePhaseShiftMm is the total phase shift term (userPhaseShiftMm plus "
    "the additional shift), not a rack start position: writing it into rackXAtProgress0 "
    "does not in general remove the residual. "
    "Keep rackTranslationMmPerProgress equal to expectedTranslationMmPerProgress to avoid "
    "cumulative drift, and keep the gear centre at least pitchRadius + meshGap from the "
    "rack pitch line."
)


@dataclass(frozen=True)
class PitchModel:
    module: float
    pinion_teeth: int
    circular_pitch: float
    pitch_circumference: float
    pitch_radius: float


@dataclass(frozen=True)
class RadialCheck:
    """Gear centre to rack pitch line, along the pitch axis."""
    pitch_axis: PitchAxis
    gear_center_axis_position: float
    rack_pitch_axis_position: float
    mesh_gap: float
    actual_center_distance: float
    expected_center_distance: float
    residual: float
    has_radial_intersection_risk: bool


@dataclass(frozen=True)
class KinematicCheck:
    declared_pinion_rotation_deg_per_progress: float
    declared_rack_translation_mm_per_progress: float
    expected_translation_mm_per_progress: float
    translation_residual: float
    has_kinematic_drift: bool


@dataclass(frozen=True)
class PhaseCheck:
    """Rack start position and its drift over the animation.

    Attributes:
        centered_start: Library phase shift is part of the expected start
        library_phase_shift_mm: Shift re-derived from the gear phase metadata
        user_phase_shift_mm: Extra shift the user applies on top
        declared_rack_x_at_progress0: Where the animation starts the rack
        expected_rack_x_at_progress0: Where the rack should start
        phase_residual_at_start: declared - expected at progress 0
        max_abs_phase_residual: Worst |observed - expected| over all samples
        worst_progress: Progress of the first sample reaching that worst value
        samples: Sample count actually used (after clamping)
        has_phase_misalignment: max_abs_phase_residual exceeds the tolerance
        recommended_additional_phase_shift_mm: -phase_residual_at_start
        recommended_absolute_phase_shift_mm: user shift + additional shift
    """
    centered_start: bool
    library_phase_shift_mm: float
    user_phase_shift_mm: float
    declared_rack_x_at_progress0: float
    expected_rack_x_at_progress0: float
    phase_residual_at_start: float
    max_abs_phase_residual: float
    worst_progress: float
    samples: int
    has_phase_misalignment: bool
    recommended_additional_phase_shift_mm: float
    recommended_absolute_phase_shift_mm: float


@dataclass(frozen=True)
class DiagnosticsResult:
    pitch_model: PitchModel
    radial_check: RadialCheck
    kinematic_check: KinematicCheck
    phase: PhaseCheck
    passed: bool
    tolerance: float
    diagnostics: List[ValidationMessage] = field(default_factory=list)
    usage_note: str = USAGE_NOTE


def _require_finite_result(value: float, name: str, field_name: str) -> float:
    """Derived quantities must stay finite so results serialise as JSON."""
    if not isfinite(value):
        raise InvalidParameterError(
            f"{name} is not finite ({value}) for these inputs; {field_name} is too large",
            field=field_name,
        )
    return value


def clamp_samples(samples: Optional[int]) -> int:
    """Sample count within [DIAGNOSTIC_SAMPLES_MIN, DIAGNOSTIC_SAMPLES_MAX]."""
    if samples is None:
        return DIAGNOSTIC_SAMPLES_DEFAULT
    n = int(require_finite(samples, "samples"))
    return max(DIAGNOSTIC_SAMPLES_MIN, min(DIAGNOSTIC_SAMPLES_MAX, n))


def diagnose(model: KinematicModel) -> DiagnosticsResult:
    """
    Check a declared rack-and-pinion animation for intersections, drift and phase.

    Args:
        model: Declared kinematics (see KinematicModel)

    Returns:
        DiagnosticsResult; passed is True only when no check raised a flag

    Raises:
        InvalidParameterError: non-positive module/teeth, non-finite inputs, or
            inputs so large that a derived rate or residual overflows
    """
    module = require_positive(model.module, "module")
    teeth = require_positive_int(model.pinion_teeth, "pinionTeeth")
    rotation_rate = require_finite(model.pinion_rotation_deg_per_progress, "pinionRotationDegPerProgress")
    translation_rate = require_finite(model.rack_translation_mm_per_progress, "rackTranslationMmPerProgress")
    rack_x0 = require_finite(model.rack_x_at_progress0, "rackXAtProgress0")
    user_shift = require_finite(model.user_phase_shift_mm, "userPhaseShiftMm")
    gear_position = require_finite(model.gear_center_axis_position, "gearCenterAxisPosition")
    rack_position = require_finite(model.rack_pitch_axis_position, "rackPitchAxisPosition")
    mesh_gap = require_finite(model.mesh_gap, "meshGap")
    axis = parse_pitch_axis(model.pitch_axis)
    samples = clamp_samples(model.samples)
    tolerance = abs(require_finite(
        DIAGNOSTIC_TOLERANCE_MM if model.tolerance is None else model.tolerance, "tolerance"
    ))

    # Pitch model
    circular_pitch = module * pi
    pitch_circumference = circular_pitch * teeth
    _require_finite_result(pitch_circumference, "pitch circumference", "module")
    pitch_radius = module * teeth / 2
    pitch_model = PitchModel(module, teeth, circular_pitch, pitch_circumference, pitch_radius)

    messages: List[ValidationMessage] = []

    # Kinematic check: distance rolled at the declared rotation rate
    expected_rate = _require_finite_result(
        (rotation_rate / 360) * pitch_circumference, "expected translation rate", "pinionRotationDegPerProgress"
    )
    translation_residual = _require_finite_result(
        translation_rate - expected_rate, "translation residual", "rackTranslationMmPerProgress"
    )
    has_drift = abs(translation_residual) > tolerance
    kinematic = KinematicCheck(
        declared_pinion_rotation_deg_per_progress=rotation_rate,
        declared_rack_translation_mm_per_progress=translation_rate,
        expected_translation_mm_per_progress=expected_rate,
        translation_residual=translation_residual,
        has_kinematic_drift=has_drift,
    )
    if has_drift:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="KINEMATIC_DRIFT",
            message=f"Rack moves {translation_rate:.4f}mm per progress but the pinion rolls "
                    f"{expected_rate:.4f}mm (residual {translation_residual:+.4f}mm)",
            suggestion=f"Set rackTranslationMmPerProgress to {expected_rate:.6f}",
        ))

    # Phase check
    library_shift = library_rack_phase_shift_mm(module, teeth)
    expected_x0 = (library_shift + user_shift) if model.centered_start else user_shift
    residual_at_start = _require_finite_result(rack_x0 - expected_x0, "start phase residual", "rackXAtProgress0")

    # Left-to-right scan; strict > keeps the first progress reaching the maximum
    max_residual = -1.0
    worst_progress = 0.0
    for i in range(samples):
        progress = i / (samples - 1)
        # observed - expected
        residual = abs(residual_at_start + translation_residual * progress)
        if residual > max_residual:
            max_residual = residual
            worst_progress = progress

    _require_finite_result(max_residual, "phase residual", "rackXAtProgress0")
    has_misalignment = max_residual > tolerance
    additional = -residual_at_start
    phase = PhaseCheck(
        centered_start=model.centered_start,
        library_phase_shift_mm=library_shift,
        user_phase_shift_mm=user_shift,
        declared_rack_x_at_progress0=rack_x0,
        expected_rack_x_at_progress0=expected_x0,
        phase_residual_at_start=residual_at_start,
        max_abs_phase_residual=max_residual,
        worst_progress=worst_progress,
        samples=samples,
        has_phase_misalignment=has_misalignment,
        recommended_additional_phase_shift_mm=additional,
        recommended_absolute_phase_shift_mm=user_shift + additional,
    )
    if has_misalignment:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="PHASE_MISALIGNMENT",
            message=f"Rack phase is off by up to {max_residual:.4f}mm (worst at progress "
                    f"{worst_progress:.3f}, {residual_at_start:+.4f}mm at the start)",
            suggestion=f"Shift the rack start by {additional:+.6f}mm "
                       f"(absolute phase shift {user_shift + additional:.6f}mm)",
        ))

    # Radial check: too close is a risk, too far is only a gap
    actual_distance = _require_finite_result(
        abs(gear_position - rack_position), "centre distance", "gearCenterAxisPosition"
    )
    expected_distance = pitch_radius + mesh_gap
    radial_residual = actual_distance - expected_distance
    has_radial_risk = radial_residual < -tolerance
    radial = RadialCheck(
        pitch_axis=axis,
        gear_center_axis_position=gear_position,
        rack_pitch_axis_position=rack_position,
        mesh_gap=mesh_gap,
        actual_center_distance=actual_distance,
        expected_center_distance=expected_distance,
        residual=radial_residual,
        has_radial_intersection_risk=has_radial_risk,
    )
    if has_radial_risk:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="RADIAL_INTERSECTION_RISK",
            message=f"Gear centre is {actual_distance:.4f}mm from the rack pitch line along "
                    f"{axis.value}, {-radial_residual:.4f}mm closer than pitch radius + gap "
                    f"({expected_distance:.4f}mm); the teeth will intersect",
            suggestion=f"Move the gear centre {expected_distance:.4f}mm from the rack pitch line",
        ))
    elif radial_residual > tolerance:
        messages.append(ValidationMessage(
            severity=Severity.INFO,
            code="RADIAL_GAP",
            message=f"Gear centre sits {radial_residual:.4f}mm beyond the meshing distance; "
                    f"the parts will not touch",
        ))

    passed = not (has_radial_risk or has_drift or has_misalignment)
    if passed:
        messages.append(ValidationMessage(
            severity=Severity.INFO,
            code="MESH_CONSISTENT",
            message="Animation is radially clear, kinematically consistent and phase aligned",
        ))

    logger.debug(
        f"Diagnostics m={module} z={teeth}: radial={radial_residual:+.4f} "
        f"drift={translation_residual:+.4f} phase={max_residual:.4f}@{worst_progress:.3f} "
        f"samples={samples} pass={passed}"
    )

    return DiagnosticsResult(
        pitch_model=pitch_model,
        radial_check=radial,
        kinematic_check=kinematic,
        phase=phase,
        passed=passed,
        tolerance=tolerance,
        diagnostics=messages,
    )


def apply_phase_correction(model: KinematicModel, result: Optional[DiagnosticsResult] = None) -> KinematicModel:
    """Return the model with the recommended phase shift applied.

    The rack start becomes the expected start, so diagnosing the returned
    model gives a phase residual of exactly zero at progress 0. This is
    rackXAtProgress0 + recommended_additional_phase_shift_mm.
    recommended_absolute_phase_shift_mm is the total shift term (user shift
    plus the additional shift), not a position; using it as the new start
    does not in general zero the residual.
    """
    if result is None:
        result = diagnose(model)
    return model.model_copy(update={"rack_x_at_progress0": result.phase.expected_rack_x_at_progress0})
