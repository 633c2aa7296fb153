"""
Phase metadata for gears and racks.

The gear library rotates every gear by -90/teeth degrees (a quarter of the
angular tooth pitch) so that a tooth flank, not a crest, sits on the
reference axis. The pitch-circle arc swept by that rotation is a quarter of
the circular pitch, and that arc is the rack shift that lets a rack mesh a
library gear at the start of an animation. Both numbers are derived here
from the construction parameters on every call.
"""

import logging
from dataclasses import dataclass
from math import radians
from typing import Tuple, Union

from ..constants import QUARTER_TOOTH_PITCH_DEG
from ..io.models import GearParams, RackParams
from .pitch import circular_pitch, pitch_features, rack_effective_teeth
from .validation import require_positive, require_positive_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GearPhaseMetadata:
    """Phase of a library gear.

    Attributes:
        initial_tooth_phase_offset_deg: Rotation applied at construction (-90/teeth)
        tooth_pitch_deg: Angular tooth pitch (360/teeth)
        recommended_rack_shift_at_start_mm: Rack shift matching the offset (mm)
        recommended_rack_shift_at_start_pitch_fraction: Same shift as a share of circular pitch
    """
    initial_tooth_phase_offset_deg: float
    tooth_pitch_deg: float
    recommended_rack_shift_at_start_mm: float
    recommended_rack_shift_at_start_pitch_fraction: float


@dataclass(frozen=True)
class RackPhaseMetadata:
    """Phase of a library rack, centred on x = 0 in its local frame.

    Attributes:
        reference_tooth_center_at_start: Tooth centre nearest the origin (mm)
        effective_teeth_number: Whole teeth the rack carries
        effective_length: Toothed length (teeth * circular pitch)
        phase_origin: Where the toothed pitch line starts
    """
    reference_tooth_center_at_start: float
    effective_teeth_number: int
    effective_length: float
    phase_origin: Tuple[float, float, float]


def gear_phase_metadata(module: float, teeth: int) -> GearPhaseMetadata:
    """
    Compute the library phase of a gear.

    Args:
        module: Gear module (mm)
        teeth: Number of teeth

    Returns:
        GearPhaseMetadata; teeth=20 gives an offset of -4.5 degrees
    """
    z = require_positive_int(teeth, "teeth")
    pitch_circle = pitch_features(module, z)

    offset_deg = -QUARTER_TOOTH_PITCH_DEG / z
    shift_mm = radians(abs(offset_deg)) * pitch_circle.radius
    fraction = shift_mm / circular_pitch(module)

    return GearPhaseMetadata(
        initial_tooth_phase_offset_deg=offset_deg,
        tooth_pitch_deg=360.0 / z,
        recommended_rack_shift_at_start_mm=shift_mm,
        recommended_rack_shift_at_start_pitch_fraction=round(fraction, 12),
    )


def rack_phase_metadata(params: RackParams) -> RackPhaseMetadata:
    """
    Compute the library phase of a rack.

    Teeth are centred at -L/2 + (i + 0.5) * p. The reference tooth is the
    centre closest to the origin; on a tie the left-most one wins.
    """
    p = circular_pitch(params.module)
    teeth = rack_effective_teeth(params)
    length = teeth * p
    start = -length / 2

    # Distance of tooth i from the origin in half pitches is |2i + 1 - teeth|;
    # compare in integers so ties resolve to the left-most tooth exactly.
    nearest = 0
    for i in range(1, teeth):
        if abs(2 * i + 1 - teeth) < abs(2 * nearest + 1 - teeth):
            nearest = i
    reference = (2 * nearest + 1 - teeth) * p / 2

    return RackPhaseMetadata(
        reference_tooth_center_at_start=reference,
        effective_teeth_number=teeth,
        effective_length=length,
        phase_origin=(start, 0.0, 0.0),
    )


def phase_metadata(params: Union[GearParams, RackParams]) -> Union[GearPhaseMetadata, RackPhaseMetadata]:
    """Dispatch on the part type."""
    if isinstance(params, GearParams):
        return gear_phase_metadata(params.module, params.teeth)
    if isinstance(params, RackParams):
        return rack_phase_metadata(params)
    raise TypeError(f"Expected GearParams or RackParams, got {type(params).__name__}")


def library_rack_phase_shift_mm(module: float, teeth: int) -> float:
    """Rack start shift the part libraries need to mesh, re-derived live.

    Taken from the gear library's own metadata rather than a stored constant.
    """
    require_positive(module, "module")
    shift = gear_phase_metadata(module, teeth).recommended_rack_shift_at_start_mm
    logger.debug(f"Library rack phase shift for m={module}, z={teeth}: {shift:.6f}mm")
    return shift
