"""
Straight rack geometry generation using build123d.

Local frame: pitch line through the origin along X, teeth pointing +Y,
extruded symmetrically along Z. The toothed length is centred on x = 0 and
tooth i sits at -L/2 + (i + 0.5) * p, matching RackPhaseMetadata.
"""

import logging
import math
from typing import List, Tuple

from build123d import (
    Part, Vector, Plane,
    BuildPart, BuildSketch, BuildLine, Polyline, make_face, extrude,
)

from ..constants import ADDENDUM_FACTOR, DEDENDUM_FACTOR, MAX_ROOT_SPAN_FRACTION
from ..calculator.phase import RackPhaseMetadata, rack_phase_metadata
from ..calculator.pitch import PitchLine, circular_pitch, rack_pitch_features
from ..calculator.validation import require_non_negative, require_positive
from ..io.models import RackParams
from .geometry_base import BaseGeometry

logger = logging.getLogger(__name__)


class RackGeometry(BaseGeometry):
    """
    Generates 3D geometry for a straight rack: a row of trapezoidal teeth on a
    solid back.
    """

    _part_name = "rack"

    def __init__(self, params: RackParams):
        self.params = params
        self.pitch = rack_pitch_features(params)
        self.phase = rack_phase_metadata(params)
        require_positive(params.thickness, "thickness")
        require_positive(params.back_height, "backHeight")
        require_non_negative(params.clearance, "clearance")

        # Cache for built geometry (avoids rebuilding on export)
        self._part = None

    def pitch_features(self) -> PitchLine:
        return self.pitch

    def phase_metadata(self) -> RackPhaseMetadata:
        return self.phase

    @property
    def tip_height(self) -> float:
        return ADDENDUM_FACTOR * self.params.module

    @property
    def root_depth(self) -> float:
        """Distance from the pitch line down to the tooth roots."""
        return DEDENDUM_FACTOR * self.params.module + self.params.clearance

    def build(self) -> Part:
        """
        Build the complete rack geometry.

        Returns:
            build123d Part object ready for export
        """
        if self._part is not None:
            return self._part

        logger.info(
            f"Building rack: m={self.params.module:.4f}mm, {self.phase.effective_teeth_number} teeth, "
            f"length {self.phase.effective_length:.3f}mm"
        )

        outline = self._tooth_outline()
        with BuildPart() as rack_builder:
            with BuildSketch(Plane.XY):
                with BuildLine():
                    Polyline(*[Vector(x, y, 0) for x, y in outline], close=True)
                make_face()
            extrude(amount=self.params.thickness / 2, both=True)

        self._part = rack_builder.part
        logger.info(f"Rack built: volume={self._part.volume:.2f} mm³")
        return self._part

    def _tooth_outline(self) -> List[Tuple[float, float]]:
        """Closed outline: back edge, then the teeth left to right."""
        m = self.params.module
        p = circular_pitch(m)
        tan_alpha = math.tan(math.radians(self.params.pressure_angle))

        half_length = self.phase.effective_length / 2
        y_tip = self.tip_height
        y_root = -self.root_depth
        y_back = y_root - self.params.back_height

        half_pitch_width = p / 4
        half_tip = max(half_pitch_width - ADDENDUM_FACTOR * m * tan_alpha, 0.05 * m)
        half_root = min(half_pitch_width + self.root_depth * tan_alpha, MAX_ROOT_SPAN_FRACTION * p)

        points = [(-half_length, y_back), (-half_length, y_root)]
        for i in range(self.phase.effective_teeth_number):
            centre = -half_length + (i + 0.5) * p
            points.extend([
                (centre - half_root, y_root),
                (centre - half_tip, y_tip),
                (centre + half_tip, y_tip),
                (centre + half_root, y_root),
            ])
        points.extend([(half_length, y_root), (half_length, y_back)])
        return points
