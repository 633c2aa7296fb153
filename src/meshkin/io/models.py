"""
Input models for parts, motions, and kinematic diagnostics.

Uses Pydantic for type coercion and camelCase aliases so the same models
read the JSON the calling agent sends and the snake_case keywords Python
callers use. Range checks (positive module, finite rates) live in the
calculator so that they raise the engine's own InvalidParameterError.
"""

from typing import Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    DEFAULT_BORE_DIAMETER_MM,
    DEFAULT_PRESSURE_ANGLE_DEG,
    DEFAULT_RACK_BACK_HEIGHT_MM,
    DEFAULT_RACK_CLEARANCE_MM,
    DEFAULT_THICKNESS_MM,
    STOCK_RACK_TEETH,
)

# [x, y, z, rx, ry, rz] - millimetres and Euler degrees
Pose6 = Tuple[float, float, float, float, float, float]


def coord(x: float, y: float, z: float, rx: float = 0.0, ry: float = 0.0, rz: float = 0.0) -> Pose6:
    """Build a 6-DOF pose. coord(x, y, z) leaves the rotation at zero."""
    return (float(x), float(y), float(z), float(rx), float(ry), float(rz))


def normalize_pose(value: Union[Sequence[float], dict]) -> Pose6:
    """Normalise [x, y, z] or [x, y, z, rotX, rotY, rotZ] to a Pose6.

    Dicts with x/y/z and optional rotX/rotY/rotZ keys are accepted too.
    """
    if isinstance(value, dict):
        return coord(
            value.get("x", 0.0), value.get("y", 0.0), value.get("z", 0.0),
            value.get("rotX", 0.0), value.get("rotY", 0.0), value.get("rotZ", 0.0),
        )
    values = list(value)
    if len(values) in (3, 6):
        return coord(*values)
    raise ValueError(f"pose must be [x, y, z] or [x, y, z, rotX, rotY, rotZ], got {len(values)} values")


class GearParams(BaseModel):
    """Spur gear construction parameters."""
    model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)

    module: float
    teeth: int
    thickness: float = DEFAULT_THICKNESS_MM
    bore_diameter: float = Field(default=DEFAULT_BORE_DIAMETER_MM, alias="boreDiameter")
    pressure_angle: float = Field(default=DEFAULT_PRESSURE_ANGLE_DEG, alias="pressureAngle")


class RackParams(BaseModel):
    """Straight rack construction parameters.

    A positive length overrides teeth_number: the rack then carries as many
    whole teeth as fit in that length.
    """
    model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)

    module: float
    teeth_number: int = Field(default=STOCK_RACK_TEETH, alias="teethNumber")
    length: Optional[float] = None
    thickness: float = DEFAULT_THICKNESS_MM
    pressure_angle: float = Field(default=DEFAULT_PRESSURE_ANGLE_DEG, alias="pressureAngle")
    clearance: float = DEFAULT_RACK_CLEARANCE_MM
    back_height: float = Field(default=DEFAULT_RACK_BACK_HEIGHT_MM, alias="backHeight")


class MotionDescriptor(BaseModel):
    """Endpoint poses of one body. Only final - initial is meaningful."""
    model_config = ConfigDict(extra='ignore', frozen=True)

    initial: Pose6
    final: Pose6

    @field_validator('initial', 'final', mode='before')
    @classmethod
    def normalize(cls, v):
        if isinstance(v, (list, tuple, dict)):
            return normalize_pose(v)
        return v


class KinematicModel(BaseModel):
    """
    Declared kinematics of a rack-and-pinion animation.

    This is what the agent sends to check_animation_intersections. All
    positions are measured along pitch_axis; rates are per unit of the
    animation's progress parameter.
    """
    model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)

    module: float
    pinion_teeth: int = Field(alias="pinionTeeth")
    pinion_rotation_deg_per_progress: float = Field(alias="pinionRotationDegPerProgress")
    rack_translation_mm_per_progress: float = Field(alias="rackTranslationMmPerProgress")
    rack_x_at_progress0: float = Field(default=0.0, alias="rackXAtProgress0")
    user_phase_shift_mm: float = Field(default=0.0, alias="userPhaseShiftMm")
    centered_start: bool = Field(default=False, alias="centeredStart")
    gear_center_axis_position: float = Field(alias="gearCenterAxisPosition")
    rack_pitch_axis_position: float = Field(default=0.0, alias="rackPitchAxisPosition")
    mesh_gap: float = Field(default=0.0, alias="meshGap")
    pitch_axis: str = Field(default="y", alias="pitchAxis")
    samples: Optional[int] = None
    tolerance: Optional[float] = None

    @field_validator('pitch_axis', mode='before')
    @classmethod
    def normalize_pitch_axis(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class LinkageRequest(BaseModel):
    """Two motions plus the solver options, as the linkage tool receives them."""
    model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)

    motion_a: MotionDescriptor = Field(alias="motionA")
    motion_b: MotionDescriptor = Field(alias="motionB")
    progress: float = 1.0
    radius_tolerance_mm: Optional[float] = Field(default=None, alias="radiusToleranceMm")
    linear_epsilon_mm: Optional[float] = Field(default=None, alias="linearEpsilonMm")
    rotation_epsilon_deg: Optional[float] = Field(default=None, alias="rotationEpsilonDeg")
    include_geometry: bool = Field(default=False, alias="includeGeometry")


__all__ = [
    "Pose6",
    "coord",
    "normalize_pose",
    "GearParams",
    "RackParams",
    "MotionDescriptor",
    "KinematicModel",
    "LinkageRequest",
]
