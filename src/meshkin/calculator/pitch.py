"""
Pitch geometry of gears and racks.

A gear is described by its pitch circle (the circle that rolls without
slipping against its mate); a rack by its pitch line, the straight analogue.

Reference: pitch diameter d = m * z, circular pitch p = m * pi.
"""

from dataclasses import dataclass, field
from math import floor, pi
from typing import Optional, Tuple, Union

from ..io.models import GearParams, RackParams
from .validation import require_positive, require_positive_int

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class PitchCircle:
    """Pitch circle of a spur gear.

    Attributes:
        radius: Pitch radius (mm) = diameter / 2
        diameter: Pitch diameter (mm) = module * teeth
        module: Gear module (mm)
        teeth: Number of teeth
    """
    radius: float
    diameter: float
    module: float
    teeth: int
    type: str = field(default="pitch_circle", init=False)


@dataclass(frozen=True)
class PitchLine:
    """Pitch line of a rack in the rack's local frame.

    The line passes through ``point`` along ``direction``; teeth point along
    ``normal``.
    """
    point: Vector3
    direction: Vector3
    normal: Vector3
    module: float
    type: str = field(default="pitch_line", init=False)


PitchFeature = Union[PitchCircle, PitchLine]


def circular_pitch(module: float) -> float:
    """Arc length per tooth along the pitch circle or line (mm)."""
    return require_positive(module, "module") * pi


def pitch_features(module: float, teeth: Optional[int] = None) -> PitchFeature:
    """
    Derive the pitch feature of a gear (module and teeth) or a rack (module only).

    Args:
        module: Tooth-size parameter in mm
        teeth: Gear tooth count; omit for a rack

    Returns:
        PitchCircle for a gear, PitchLine for a rack

    Raises:
        InvalidParameterError: module or teeth not positive
    """
    m = require_positive(module, "module")
    if teeth is None:
        return PitchLine(
            point=(0.0, 0.0, 0.0),
            direction=(1.0, 0.0, 0.0),
            normal=(0.0, 1.0, 0.0),
            module=m,
        )

    z = require_positive_int(teeth, "teeth")
    diameter = m * z
    return PitchCircle(radius=diameter / 2, diameter=diameter, module=m, teeth=z)


def gear_pitch_features(params: GearParams) -> PitchCircle:
    return pitch_features(params.module, params.teeth)


def rack_pitch_features(params: RackParams) -> PitchLine:
    return pitch_features(params.module)


def rack_effective_teeth(params: RackParams) -> int:
    """Whole teeth carried by a rack.

    A positive length wins over teeth_number: as many teeth as fit, at least one.
    """
    p = circular_pitch(params.module)
    if params.length is not None:
        length = require_positive(params.length, "length")
        return max(1, floor(length / p))
    return require_positive_int(params.teeth_number, "teethNumber")


def gear_params_from_diameter(diameter: float, module: float = 1.0, **kwargs) -> GearParams:
    """
    Diameter-first gear sizing: pick the tooth count closest to the diameter.

    A 20mm gear at module 1 gets 20 teeth and a 10mm pitch radius.
    """
    d = require_positive(diameter, "diameter")
    m = require_positive(module, "module")
    teeth = max(1, round(d / m))
    return GearParams(module=m, teeth=teeth, **kwargs)
