"""
Spur gear geometry generation using build123d.

Teeth are straight-flanked trapezoids: flanks lean at the pressure angle and
the tooth is half a circular pitch thick at the pitch circle, which is what
meshing against a rack (also straight-flanked) needs. Involute flanks are the
renderer's business.

Local frame: gear axis along Z, centred on the origin, tooth 0 centred on
+X. The library phase offset is not built in; AssemblyPart adds it to the
spin-axis rotation of the pose.
"""

import logging
import math
from typing import List, Tuple

from build123d import (
    Part, Cylinder, Align, Vector, Plane,
    BuildPart, BuildSketch, BuildLine, Polyline, make_face, extrude,
)

from ..constants import ADDENDUM_FACTOR, DEDENDUM_FACTOR, MAX_ROOT_SPAN_FRACTION
from ..calculator.phase import GearPhaseMetadata, gear_phase_metadata
from ..calculator.pitch import PitchCircle, gear_pitch_features
from ..calculator.validation import require_non_negative, require_positive
from ..io.models import GearParams
from .geometry_base import BaseGeometry

logger = logging.getLogger(__name__)


class SpurGearGeometry(BaseGeometry):
    """
    Generates 3D geometry for a spur gear (pinion or idler).

    Optionally bored through the axis.
    """

    _part_name = "gear"

    def __init__(self, params: GearParams):
        """
        Initialize gear geometry generator.

        Args:
            params: Gear construction parameters (module, teeth, thickness, bore)
        """
        self.params = params
        self.pitch = gear_pitch_features(params)
        require_positive(params.thickness, "thickness")
        require_non_negative(params.bore_diameter, "boreDiameter")

        # Cache for built geometry (avoids rebuilding on export)
        self._part = None

    def pitch_features(self) -> PitchCircle:
        return self.pitch

    def phase_metadata(self) -> GearPhaseMetadata:
        return gear_phase_metadata(self.params.module, self.params.teeth)

    @property
    def tip_radius(self) -> float:
        return self.pitch.radius + ADDENDUM_FACTOR * self.params.module

    @property
    def root_radius(self) -> float:
        return self.pitch.radius - DEDENDUM_FACTOR * self.params.module

    def build(self) -> Part:
        """
        Build the complete gear geometry.

        Returns:
            build123d Part object ready for export
        """
        if self._part is not None:
            return self._part

        m = self.params.module
        z = self.params.teeth
        if self.root_radius <= 0:
            raise ValueError(
                f"Gear with {z} teeth at module {m} has no root circle "
                f"(root radius {self.root_radius:.3f}mm); use more teeth"
            )

        logger.info(
            f"Building gear: m={m:.4f}mm, z={z}, pitch radius {self.pitch.radius:.3f}mm, "
            f"thickness {self.params.thickness}mm"
        )

        outline = self._tooth_outline()
        with BuildPart() as gear_builder:
            with BuildSketch(Plane.XY):
                with BuildLine():
                    Polyline(*[Vector(x, y, 0) for x, y in outline], close=True)
                make_face()
            extrude(amount=self.params.thickness / 2, both=True)

        gear = gear_builder.part
        bore_radius = self._bore_radius()
        if bore_radius > 0:
            bore_cyl = Cylinder(
                radius=bore_radius,
                height=self.params.thickness + 1.0,
                align=(Align.CENTER, Align.CENTER, Align.CENTER)
            )
            gear = gear - bore_cyl

        self._part = gear
        logger.info(f"Gear built: volume={gear.volume:.2f} mm³")
        return self._part

    def _tooth_outline(self) -> List[Tuple[float, float]]:
        """Closed outline of all teeth, counter-clockwise from tooth 0."""
        m = self.params.module
        z = self.params.teeth
        r_pitch = self.pitch.radius
        r_tip = self.tip_radius
        r_root = self.root_radius
        tan_alpha = math.tan(math.radians(self.params.pressure_angle))

        pitch_angle = 2 * math.pi / z
        # Half tooth thickness is a quarter of the circular pitch at the pitch circle
        half_pitch_width = math.pi * m / 4
        half_tip = max(half_pitch_width - ADDENDUM_FACTOR * m * tan_alpha, 0.05 * m)
        half_root = half_pitch_width + DEDENDUM_FACTOR * m * tan_alpha

        tip_angle = half_tip / r_tip
        root_angle = min(half_root / r_root, MAX_ROOT_SPAN_FRACTION * pitch_angle)
        logger.debug(f"Gear tooth half angles: tip {math.degrees(tip_angle):.3f}°, root {math.degrees(root_angle):.3f}°")

        points = []
        for k in range(z):
            centre = k * pitch_angle
            for radius, angle in (
                (r_root, centre - root_angle),
                (r_tip, centre - tip_angle),
                (r_tip, centre + tip_angle),
                (r_root, centre + root_angle),
            ):
                points.append((radius * math.cos(angle), radius * math.sin(angle)))
        return points

    def _bore_radius(self) -> float:
        bore_radius = self.params.bore_diameter / 2
        if bore_radius <= 0:
            return 0.0
        # Leave at least one module of rim below the root circle
        max_radius = self.root_radius - self.params.module
        if bore_radius > max_radius:
            reduced = max(max_radius, 0.0)
            logger.warning(
                f"Bore {self.params.bore_diameter}mm leaves no rim below root radius "
                f"{self.root_radius:.3f}mm; using {2 * reduced:.3f}mm"
            )
            return reduced
        return bore_radius
