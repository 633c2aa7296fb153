"""
Pitch-aligned placement of meshing parts.

Two parts mesh when their pitch features touch:

- gear-gear: the centres sit rA + rB (+ gap) apart
- gear-rack: the gear centre sits r (+ gap) from the rack's pitch line;
  the rack goes below/behind the gear along the pitch axis, the gear
  above/in front of the rack
- rack-rack: never meshes directly, a gear has to sit between them

position_relative() computes where to put a part; check_alignment()
reports what a placement should measure. Measuring the rendered geometry is
the renderer's job, so the actual distance stays None unless the caller
passes a measured offset.

Example:
    >>> from meshkin.calculator.alignment import position_relative
    >>> placement = position_relative("pinion", "rack", target_pitch_radius=10.0,
    ...                               reference_is_rack=True)
    >>> placement.translate_expression
    'translate([0, 10, 0], pinion)'
"""

import logging
from dataclasses import dataclass
from math import sqrt
from typing import Optional, Sequence, Tuple, Union

from ..constants import DIAGNOSTIC_TOLERANCE_MM
from ..enums import MeshType, PitchAxis
from ..errors import InvalidParameterError, UnsupportedConfigurationError
from .validation import parse_pitch_axis, require_finite, require_non_negative, require_positive

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class PlacementResult:
    """Where to put a target part so it meshes with a reference part.

    Attributes:
        target: Name of the part being placed
        reference: Name of the part it is placed against
        mesh_type: gear_gear or gear_rack
        distance: Signed offset along the pitch axis (mm)
        offset_vector: Offset of the target relative to the reference
        translate_expression: Script expression applying the offset
        explanation: Geometric reasoning, for display only
    """
    target: str
    reference: str
    mesh_type: MeshType
    distance: float
    offset_vector: Vector3
    translate_expression: str
    explanation: str


@dataclass(frozen=True)
class AlignmentCheck:
    """Expected (and optionally measured) separation of two pitch features."""
    mesh_type: MeshType
    valid: bool
    description: str
    expected_distance: Optional[float] = None
    expected_offset_vector: Optional[Vector3] = None
    actual_distance: Optional[float] = None
    residual: Optional[float] = None
    aligned: Optional[bool] = None


def _fmt(value: float) -> str:
    """Compact number for script expressions (10.0 -> '10')."""
    if value == 0:
        return "0"
    return f"{value:.10g}"


def axis_vector(axis: PitchAxis, distance: float) -> Vector3:
    if axis == PitchAxis.X:
        return (distance, 0.0, 0.0)
    return (0.0, distance, 0.0)


def classify_mesh(is_rack_a: bool, is_rack_b: bool) -> MeshType:
    if is_rack_a and is_rack_b:
        return MeshType.RACK_RACK
    if is_rack_a or is_rack_b:
        return MeshType.GEAR_RACK
    return MeshType.GEAR_GEAR


def position_relative(
    target: str,
    reference: str,
    target_pitch_radius: Optional[float],
    reference_pitch_radius: Optional[float] = None,
    target_is_rack: bool = False,
    reference_is_rack: bool = False,
    gap: float = 0.0,
    pitch_axis: Union[str, PitchAxis] = "y",
) -> PlacementResult:
    """
    Compute the pitch-aligned placement of target relative to reference.

    Args:
        target: Name of the part to move
        reference: Name of the part that stays put
        target_pitch_radius: Pitch radius of the target (ignored for a rack)
        reference_pitch_radius: Pitch radius of the reference (needed unless it is a rack)
        target_is_rack: Target is a rack
        reference_is_rack: Reference is a rack
        gap: Intentional clearance between the pitch features (mm)
        pitch_axis: 'x' or 'y'

    Returns:
        PlacementResult with offset, script expression, and explanation

    Raises:
        UnsupportedConfigurationError: both parts are racks
        InvalidParameterError: missing or non-positive radius, negative gap, bad axis
    """
    axis = parse_pitch_axis(pitch_axis)
    gap = require_non_negative(gap, "gap")
    mesh_type = classify_mesh(target_is_rack, reference_is_rack)

    if mesh_type == MeshType.RACK_RACK:
        raise UnsupportedConfigurationError(
            f"{target} and {reference} are both racks; two racks cannot mesh directly - "
            f"place a gear between them and align each rack to that gear",
        )

    axis_name = axis.value
    if mesh_type == MeshType.GEAR_GEAR:
        r_target = _radius(target_pitch_radius, "targetPitchRadius")
        r_reference = _radius(reference_pitch_radius, "referencePitchRadius")
        distance = r_target + r_reference + gap
        explanation = (
            f"Gear-gear mesh: the pitch circles of {target} (r={r_target:g}mm) and "
            f"{reference} (r={r_reference:g}mm) must touch, so the centres sit "
            f"{r_target:g} + {r_reference:g}"
            + (f" + gap {gap:g}" if gap else "")
            + f" = {distance:g}mm apart along {axis_name}. "
            f"{target} is placed on the positive {axis_name} side of {reference}."
        )
    elif target_is_rack:
        r_gear = _radius(reference_pitch_radius, "referencePitchRadius")
        distance = -(r_gear + gap)
        explanation = (
            f"Gear-rack mesh: the pitch line of rack {target} must be tangent to the pitch "
            f"circle of {reference} (r={r_gear:g}mm). The rack goes below/behind the gear, "
            f"so it is offset {distance:g}mm along {axis_name} from the gear centre"
            + (f" (includes gap {gap:g}mm)" if gap else "")
            + ". Library phase metadata on both parts already aligns teeth with valleys."
        )
    else:
        r_gear = _radius(target_pitch_radius, "targetPitchRadius")
        distance = r_gear + gap
        explanation = (
            f"Gear-rack mesh: the pitch circle of {target} (r={r_gear:g}mm) must be tangent "
            f"to the pitch line of rack {reference}. The gear goes above/in front of the rack, "
            f"so its centre is offset +{distance:g}mm along {axis_name}"
            + (f" (includes gap {gap:g}mm)" if gap else "")
            + ". Library phase metadata on both parts already aligns teeth with valleys."
        )

    offset = axis_vector(axis, distance)
    expression = f"translate([{', '.join(_fmt(v) for v in offset)}], {target})"
    logger.debug(f"Placed {target} against {reference}: {mesh_type.value}, offset {offset}")

    return PlacementResult(
        target=target,
        reference=reference,
        mesh_type=mesh_type,
        distance=distance,
        offset_vector=offset,
        translate_expression=expression,
        explanation=explanation,
    )


def check_alignment(
    pitch_radius_a: Optional[float],
    pitch_radius_b: Optional[float],
    is_rack_a: bool = False,
    is_rack_b: bool = False,
    pitch_axis: Union[str, PitchAxis] = "y",
    gap: float = 0.0,
    actual_offset: Optional[Sequence[float]] = None,
    tolerance: float = DIAGNOSTIC_TOLERANCE_MM,
) -> AlignmentCheck:
    """
    Report the separation two pitch features need in order to mesh.

    Rack-rack pairs come back with valid=False rather than raising, since
    this is a check of an existing placement.

    Args:
        pitch_radius_a: Pitch radius of part A (ignored for a rack)
        pitch_radius_b: Pitch radius of part B (ignored for a rack)
        is_rack_a: Part A is a rack
        is_rack_b: Part B is a rack
        pitch_axis: 'x' or 'y'
        gap: Intentional clearance (mm)
        actual_offset: Measured offset of B relative to A, if available
        tolerance: Allowed |actual - expected| when actual_offset is given

    Returns:
        AlignmentCheck
    """
    axis = parse_pitch_axis(pitch_axis)
    gap = require_non_negative(gap, "gap")
    mesh_type = classify_mesh(is_rack_a, is_rack_b)

    if mesh_type == MeshType.RACK_RACK:
        return AlignmentCheck(
            mesh_type=mesh_type,
            valid=False,
            description=(
                "Rack-rack configuration is invalid: two racks cannot mesh directly. "
                "Place a gear between them; each rack then sits one gear pitch radius "
                "from the gear centre on opposite sides."
            ),
        )

    if mesh_type == MeshType.GEAR_GEAR:
        r_a = _radius(pitch_radius_a, "pitchRadiusA")
        r_b = _radius(pitch_radius_b, "pitchRadiusB")
        expected = r_a + r_b + gap
        description = (
            f"Gear-gear mesh: centre distance should be {r_a:g} + {r_b:g}"
            + (f" + {gap:g}" if gap else "")
            + f" = {expected:g}mm along {axis.value}."
        )
        offset = axis_vector(axis, expected)
    else:
        # Offset of B relative to A; the sign flips when B is the rack
        if is_rack_a:
            r_gear = _radius(pitch_radius_b, "pitchRadiusB")
            offset = axis_vector(axis, r_gear + gap)
        else:
            r_gear = _radius(pitch_radius_a, "pitchRadiusA")
            offset = axis_vector(axis, -(r_gear + gap))
        expected = r_gear + gap
        description = (
            f"Gear-rack mesh: the gear centre should sit {expected:g}mm from the rack pitch "
            f"line along {axis.value} (gear pitch radius {r_gear:g}mm"
            + (f" + gap {gap:g}mm" if gap else "")
            + "), with the rack below/behind the gear."
        )

    actual_distance = None
    residual = None
    aligned = None
    if actual_offset is not None:
        components = [require_finite(v, "actualOffset") for v in actual_offset]
        if len(components) != 3:
            raise InvalidParameterError("actualOffset must have 3 components", field="actualOffset")
        actual_distance = sqrt(sum(c * c for c in components))
        residual = actual_distance - expected
        aligned = abs(residual) <= abs(tolerance)
        description += f" Measured {actual_distance:g}mm (residual {residual:+.4f}mm)."
    else:
        description += " Actual distance not yet measured - verify against the rendered geometry."

    return AlignmentCheck(
        mesh_type=mesh_type,
        valid=True,
        description=description,
        expected_distance=expected,
        expected_offset_vector=offset,
        actual_distance=actual_distance,
        residual=residual,
        aligned=aligned,
    )


def _radius(value: Optional[float], field_name: str) -> float:
    if value is None:
        raise InvalidParameterError(f"{field_name} is required for a gear", field=field_name)
    return require_positive(value, field_name)
