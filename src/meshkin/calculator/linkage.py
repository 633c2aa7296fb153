"""
Linkage inference - rack and pinion from two endpoint motions.

Given where two bodies start and end, work out which one slides and which
one turns, invert the rolling-without-slip constraint

    translation = pitch_radius * radians(rotation)

for the pitch radius, and build an assembly whose poses follow the progress
parameter continuously between the two endpoints.

If the stock pinion already has that pitch radius (within a caller-chosen
tolerance) the assembly is the stock [rack, pinion] pair. Otherwise a
compound idler is synthesized: its rack-meshing stage has exactly the
inferred pitch radius and the stock pinion rides on the same shaft, giving
[rack, idler, pinion].

Example:
    >>> from meshkin.calculator.linkage import coord, linkage
    >>> result = linkage(
    ...     {"initial": coord(0, -2, 0), "final": coord(0, 2, 0)},
    ...     {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)},
    ... )
    >>> round(result.pitch_radius, 6)
    4.583662
"""

import logging
from dataclasses import dataclass
from math import ceil, radians
from typing import Optional, Tuple, Union

from ..constants import (
    LINKAGE_RADIUS_TOLERANCE_MM,
    MAX_IDLER_TEETH,
    MIN_IDLER_TEETH,
    NEGLIGIBLE_LINEAR_DELTA_MM,
    NEGLIGIBLE_ROTATION_DELTA_DEG,
    ROTATION_DOMINANCE_RATIO,
    STOCK_MODULE_MM,
    STOCK_PINION_TEETH,
    STOCK_RACK_TEETH,
)
from ..enums import PartKind
from ..errors import AmbiguousMotionError, DegenerateLinkageError, InvalidParameterError
from ..io.models import GearParams, MotionDescriptor, Pose6, RackParams, coord
from .phase import gear_phase_metadata
from .pitch import circular_pitch, pitch_features
from .validation import require_finite, require_non_negative, require_positive, require_positive_int

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]
MotionInput = Union[MotionDescriptor, dict]

TRANSLATION_AXES = ("x", "y", "z")
ROTATION_AXES = ("rotX", "rotY", "rotZ")

# Local frame -> world: rack length along the translation axis
RACK_ORIENTATION = {
    "x": (0.0, 0.0, 0.0),
    "y": (0.0, 0.0, 90.0),
    "z": (0.0, -90.0, 0.0),
}

# Local frame -> world: gear axis (local Z) along the rotation axis
GEAR_ORIENTATION = {
    "rotX": (0.0, 90.0, 0.0),
    "rotY": (-90.0, 0.0, 0.0),
    "rotZ": (0.0, 0.0, 0.0),
}


@dataclass(frozen=True)
class AxisDelta:
    """Dominant component of one role's motion."""
    axis: str
    delta: float
    source: str  # "motionA" | "motionB"


@dataclass(frozen=True)
class LinkageClassification:
    translation_source: str
    rotation_source: str


@dataclass(frozen=True)
class AssemblyPart:
    """One positioned body of the assembly, evaluated at a progress value.

    Attributes:
        name: "rack", "idler" or "pinion"
        kind: PartKind.RACK or PartKind.GEAR
        params: Construction parameters
        pose: World pose [x, y, z, rx, ry, rz] at the requested progress
        orientation: Euler rotation taking the part's local frame to world axes
        phase_offset: Library phase applied to the spin axis (degrees; 0 for racks)
        mesh_with: Part this one meshes with
        shaft_with: Part sharing this one's shaft (compound idler)
    """
    name: str
    kind: PartKind
    params: Union[GearParams, RackParams]
    pose: Pose6
    orientation: Vector3
    phase_offset: float = 0.0
    mesh_with: Optional[str] = None
    shaft_with: Optional[str] = None

    def builder(self):
        """Part solid generator for these parameters (build123d)."""
        from ..core.gear import SpurGearGeometry
        from ..core.rack import RackGeometry

        if self.kind == PartKind.RACK:
            return RackGeometry(self.params)
        return SpurGearGeometry(self.params)

    def build_solid(self):
        """The build123d solid rotated and moved to this pose. Requires build123d."""
        return self.builder().placed(self.orientation, self.pose)

    def build_geometry(self, tolerance: Optional[float] = None):
        """Tessellate the placed solid into world-frame polygons.

        Requires build123d.
        """
        builder = self.builder()
        solid = builder.placed(self.orientation, self.pose)
        if tolerance is None:
            return builder.to_geometry(part=solid)
        return builder.to_geometry(tolerance=tolerance, part=solid)


@dataclass(frozen=True)
class LinkageResult:
    """Inferred rack-and-pinion linkage.

    Attributes:
        pitch_radius: Radius implied by translation / rotation (mm)
        translation: Dominant linear axis and delta of the sliding body
        rotation: Dominant rotation axis and delta of the turning body
        classification: Which input supplied each role
        assembly: [rack, pinion] or [rack, idler, pinion]
        progress: Progress value the poses were evaluated at
        stock_pitch_radius: Pitch radius of the stock pinion (mm)
        radius_tolerance_mm: Mismatch allowed before an idler is inserted
    """
    pitch_radius: float
    translation: AxisDelta
    rotation: AxisDelta
    classification: LinkageClassification
    assembly: Tuple[AssemblyPart, ...]
    progress: float
    stock_pitch_radius: float
    radius_tolerance_mm: float

    @property
    def uses_idler(self) -> bool:
        return len(self.assembly) == 3


def motion_deltas(motion: MotionDescriptor) -> Tuple[Vector3, Vector3]:
    """Component-wise final - initial for position and rotation.

    Rotation deltas are plain signed differences: a 370 degree turn stays 370.
    """
    delta = [f - i for i, f in zip(motion.initial, motion.final)]
    return (delta[0], delta[1], delta[2]), (delta[3], delta[4], delta[5])


def interpolate_pose(initial: Pose6, final: Pose6, progress: float) -> Pose6:
    """Affine interpolation, exact at progress 0, 0.5 and 1."""
    return coord(*((1.0 - progress) * a + progress * b for a, b in zip(initial, final)))


def _dominant(values: Vector3) -> int:
    """Index of the largest |value|; the left-most wins a tie."""
    best = 0
    for i in range(1, len(values)):
        if abs(values[i]) > abs(values[best]):
            best = i
    return best


def _as_motion(value: MotionInput, field_name: str) -> MotionDescriptor:
    if isinstance(value, MotionDescriptor):
        return value
    try:
        return MotionDescriptor.model_validate(value)
    except ValueError as e:
        raise InvalidParameterError(f"{field_name} is not a valid motion: {e}", field=field_name)


def _slides(
    linear: Vector3,
    rotation: Vector3,
    linear_epsilon: float,
    rotation_epsilon: float,
    reference_radius: float,
    dominance_ratio: float,
) -> bool:
    """True when the linear travel dominates whatever rotation comes with it."""
    travel = max(abs(v) for v in linear)
    turn = max(abs(v) for v in rotation)
    if travel <= linear_epsilon:
        return False
    if turn <= rotation_epsilon:
        return True
    # Arc the rotation would roll at the reference radius
    return reference_radius * radians(turn) <= dominance_ratio * travel


def classify_motions(
    motion_a: MotionDescriptor,
    motion_b: MotionDescriptor,
    linear_epsilon: float = NEGLIGIBLE_LINEAR_DELTA_MM,
    rotation_epsilon: float = NEGLIGIBLE_ROTATION_DELTA_DEG,
    reference_radius: float = STOCK_MODULE_MM * STOCK_PINION_TEETH / 2,
    dominance_ratio: float = ROTATION_DOMINANCE_RATIO,
) -> LinkageClassification:
    """
    Decide which motion translates and which rotates.

    A translation source slides with at most incidental rotation: the arc its
    rotation would roll at reference_radius is no more than dominance_ratio
    of its linear travel. Float noise on a rack's rotation therefore does not
    disqualify it. The other motion must then carry a rotation larger than
    rotation_epsilon. The answer depends only on the motions, so swapping the
    arguments swaps the labels and nothing else.

    Raises:
        AmbiguousMotionError: no single sliding body can be identified
        DegenerateLinkageError: the rotating body barely rotates
    """
    profiles = {}
    for label, motion in (("motionA", motion_a), ("motionB", motion_b)):
        for value in motion.initial + motion.final:
            require_finite(value, label)
        linear, rotation = motion_deltas(motion)
        profiles[label] = (
            _slides(linear, rotation, linear_epsilon, rotation_epsilon, reference_radius, dominance_ratio),
            max(abs(v) for v in linear) > linear_epsilon,
            max(abs(v) for v in rotation) > rotation_epsilon,
        )

    candidates = [label for label, (slides, _, _) in profiles.items() if slides]

    if len(candidates) == 2:
        raise AmbiguousMotionError(
            "Both motions are translations; one body must rotate to form a rack and pinion",
        )
    if len(candidates) == 1:
        translation_source = candidates[0]
        rotation_source = "motionB" if translation_source == "motionA" else "motionA"
        _, _, turns = profiles[rotation_source]
        if not turns:
            raise DegenerateLinkageError(
                f"{rotation_source} rotates by less than {rotation_epsilon:g} degrees; "
                f"the pitch radius cannot be inverted from such a small rotation",
                field=rotation_source,
            )
        return LinkageClassification(translation_source=translation_source, rotation_source=rotation_source)

    if not any(moves or turns for _, moves, turns in profiles.values()):
        raise AmbiguousMotionError("Neither motion moves; there is nothing to infer a linkage from")
    raise AmbiguousMotionError(
        "Cannot tell which motion is the translation: a rack must slide without rotating "
        "while the pinion turns",
    )


def linkage(
    motion_a: MotionInput,
    motion_b: MotionInput,
    progress: float = 1.0,
    radius_tolerance_mm: float = LINKAGE_RADIUS_TOLERANCE_MM,
    stock_module: float = STOCK_MODULE_MM,
    stock_teeth: int = STOCK_PINION_TEETH,
    linear_epsilon_mm: float = NEGLIGIBLE_LINEAR_DELTA_MM,
    rotation_epsilon_deg: float = NEGLIGIBLE_ROTATION_DELTA_DEG,
) -> LinkageResult:
    """
    Infer a rack-and-pinion linkage from two endpoint motions.

    Args:
        motion_a: {initial, final} poses of one body
        motion_b: {initial, final} poses of the other body
        progress: Where in [0, 1] to evaluate the assembly poses (default: end)
        radius_tolerance_mm: Radius mismatch allowed before an idler is inserted
        stock_module: Module of the stock rack and pinion (mm)
        stock_teeth: Tooth count of the stock pinion
        linear_epsilon_mm: Linear travel at or below this counts as not moving
        rotation_epsilon_deg: Rotation at or below this counts as not turning

    Returns:
        LinkageResult with pitch radius, roles, and positioned assembly

    Raises:
        InvalidParameterError: bad progress, tolerance, or motion
        AmbiguousMotionError: roles cannot be identified
        DegenerateLinkageError: rotation too small to invert, or too small for
            the travel to be bridged by a buildable idler
    """
    motion_a = _as_motion(motion_a, "motionA")
    motion_b = _as_motion(motion_b, "motionB")
    progress = require_finite(progress, "progress")
    if not 0.0 <= progress <= 1.0:
        raise InvalidParameterError(f"progress must be within [0, 1], got {progress}", field="progress")
    radius_tolerance_mm = require_non_negative(radius_tolerance_mm, "radiusToleranceMm")
    stock_module = require_positive(stock_module, "stockModule")
    stock_teeth = require_positive_int(stock_teeth, "stockTeeth")
    linear_epsilon_mm = require_non_negative(linear_epsilon_mm, "linearEpsilonMm")
    rotation_epsilon_deg = require_non_negative(rotation_epsilon_deg, "rotationEpsilonDeg")
    stock_radius = pitch_features(stock_module, stock_teeth).radius

    classification = classify_motions(
        motion_a,
        motion_b,
        linear_epsilon=linear_epsilon_mm,
        rotation_epsilon=rotation_epsilon_deg,
        reference_radius=stock_radius,
    )
    motions = {"motionA": motion_a, "motionB": motion_b}
    sliding = motions[classification.translation_source]
    turning = motions[classification.rotation_source]

    linear, _ = motion_deltas(sliding)
    _, rotation = motion_deltas(turning)
    t_index = _dominant(linear)
    r_index = _dominant(rotation)
    translation = AxisDelta(TRANSLATION_AXES[t_index], linear[t_index], classification.translation_source)
    rotation_delta = AxisDelta(ROTATION_AXES[r_index], rotation[r_index], classification.rotation_source)

    rotation_rad = radians(rotation_delta.delta)
    if rotation_rad == 0.0:
        raise DegenerateLinkageError("Rotation delta is zero along its dominant axis", field=rotation_delta.source)
    pitch_radius = abs(translation.delta / rotation_rad)
    logger.debug(
        f"Linkage: {translation.axis} {translation.delta:g}mm over {rotation_delta.axis} "
        f"{rotation_delta.delta:g}deg -> r={pitch_radius:.6f}mm (stock {stock_radius:g}mm)"
    )

    rack_pose = interpolate_pose(sliding.initial, sliding.final, progress)
    spin_pose = interpolate_pose(turning.initial, turning.final, progress)
    pinion_params = GearParams(module=stock_module, teeth=stock_teeth)

    if abs(pitch_radius - stock_radius) <= radius_tolerance_mm:
        rack = _rack_part(stock_module, translation, rack_pose, mesh_with="pinion")
        pinion = _gear_part("pinion", pinion_params, rotation_delta.axis, spin_pose, mesh_with="rack")
        assembly = (rack, pinion)
    else:
        try:
            idler_params = synthesize_idler(pitch_radius, stock_module)
        except DegenerateLinkageError as e:
            raise DegenerateLinkageError(
                f"{rotation_delta.delta:g} degrees of rotation is too small for {translation.delta:g}mm "
                f"of travel: {e}",
                field=rotation_delta.source,
            )
        logger.info(
            f"Pitch radius {pitch_radius:.4f}mm differs from stock {stock_radius:g}mm by more than "
            f"{radius_tolerance_mm:g}mm; inserting idler m={idler_params.module:.4f} z={idler_params.teeth}"
        )
        rack = _rack_part(idler_params.module, translation, rack_pose, mesh_with="idler")
        idler = _gear_part("idler", idler_params, rotation_delta.axis, spin_pose, mesh_with="rack", shaft_with="pinion")
        shaft_offset = (idler_params.thickness + pinion_params.thickness) / 2
        pinion_pose = list(spin_pose)
        pinion_pose[r_index] += shaft_offset
        pinion = _gear_part("pinion", pinion_params, rotation_delta.axis, coord(*pinion_pose), shaft_with="idler")
        assembly = (rack, idler, pinion)

    return LinkageResult(
        pitch_radius=pitch_radius,
        translation=translation,
        rotation=rotation_delta,
        classification=classification,
        assembly=assembly,
        progress=progress,
        stock_pitch_radius=stock_radius,
        radius_tolerance_mm=radius_tolerance_mm,
    )


def linkage_options(request) -> dict:
    """Keyword options for linkage() from the fields a LinkageRequest sets."""
    fields = {
        "radius_tolerance_mm": request.radius_tolerance_mm,
        "linear_epsilon_mm": request.linear_epsilon_mm,
        "rotation_epsilon_deg": request.rotation_epsilon_deg,
    }
    return {name: value for name, value in fields.items() if value is not None}


def synthesize_idler(pitch_radius: float, module: float = STOCK_MODULE_MM) -> GearParams:
    """Gear with exactly the requested pitch radius and a whole tooth count.

    Teeth come from the nominal module; the module is then adjusted so that
    module * teeth / 2 equals the radius.

    Raises:
        DegenerateLinkageError: the radius needs more than MAX_IDLER_TEETH teeth
    """
    r = require_positive(pitch_radius, "pitchRadius")
    teeth = max(MIN_IDLER_TEETH, round(2 * r / module))
    if teeth > MAX_IDLER_TEETH:
        raise DegenerateLinkageError(
            f"an idler of pitch radius {r:.6g}mm would need {teeth} teeth (limit {MAX_IDLER_TEETH})",
            field="pitchRadius",
        )
    return GearParams(module=2 * r / teeth, teeth=teeth)


def _rack_part(module: float, translation: AxisDelta, pose: Pose6, mesh_with: str) -> AssemblyPart:
    # Enough teeth to cover the travel with some to spare on each side
    travel_teeth = ceil(abs(translation.delta) / circular_pitch(module))
    params = RackParams(module=module, teeth_number=max(STOCK_RACK_TEETH, travel_teeth + 4))
    return AssemblyPart(
        name="rack",
        kind=PartKind.RACK,
        params=params,
        pose=pose,
        orientation=RACK_ORIENTATION[translation.axis],
        mesh_with=mesh_with,
    )


def _gear_part(
    name: str,
    params: GearParams,
    rotation_axis: str,
    pose: Pose6,
    mesh_with: Optional[str] = None,
    shaft_with: Optional[str] = None,
) -> AssemblyPart:
    phase = gear_phase_metadata(params.module, params.teeth).initial_tooth_phase_offset_deg
    spin = 3 + ROTATION_AXES.index(rotation_axis)
    phased = list(pose)
    phased[spin] += phase
    return AssemblyPart(
        name=name,
        kind=PartKind.GEAR,
        params=params,
        pose=coord(*phased),
        orientation=GEAR_ORIENTATION[rotation_axis],
        phase_offset=phase,
        mesh_with=mesh_with,
        shaft_with=shaft_with,
    )
