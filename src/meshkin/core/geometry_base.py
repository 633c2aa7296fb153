"""
Base class for meshkin part solids.

Provides the shared build cache, placement, STEP export, and tessellation
into the polygon-list Geometry used by SpurGearGeometry and RackGeometry.
"""

import logging
from typing import Sequence

from ..constants import TESSELLATION_ANGULAR_TOLERANCE_RAD, TESSELLATION_TOLERANCE_MM
from .geometry import Geometry, Polygon

logger = logging.getLogger(__name__)


def tessellate(
    part,
    tolerance: float = TESSELLATION_TOLERANCE_MM,
    angular_tolerance: float = TESSELLATION_ANGULAR_TOLERANCE_RAD,
) -> Geometry:
    """Triangulate a build123d shape into polygon-list Geometry."""
    vertices, triangles = part.tessellate(tolerance, angular_tolerance)
    points = [(v.X, v.Y, v.Z) for v in vertices]
    return Geometry(tuple(Polygon((points[a], points[b], points[c])) for a, b, c in triangles))


class BaseGeometry:
    """Base class providing shared placement/export/tessellation for part solids.

    Subclasses must:
    - Set self._part = None in __init__
    - Implement build() -> Part
    - Set _part_name class attribute for log messages
    """

    _part_name: str = "part"

    def build(self):
        raise NotImplementedError

    def placed(self, orientation: Sequence[float], pose: Sequence[float]):
        """
        Copy of the solid taken from its local frame to a world pose.

        Args:
            orientation: Euler angles (degrees) turning local axes into world axes
            pose: [x, y, z, rx, ry, rz] applied after the orientation

        Both rotations are about the fixed X, then Y, then Z axes through the
        origin; the translation comes last. The cached local solid is unchanged.
        """
        from build123d import Axis, Location

        if self._part is None:
            self.build()

        x, y, z, rx, ry, rz = pose
        part = self._part
        for angles in (orientation, (rx, ry, rz)):
            for axis, angle in zip((Axis.X, Axis.Y, Axis.Z), angles):
                if angle:
                    part = part.rotate(axis, angle)
        part = part.moved(Location((x, y, z)))
        logger.debug(f"Placed {self._part_name} at {list(pose)} (orientation {list(orientation)})")
        return part

    def export_step(self, filepath: str, part=None):
        """Export to STEP file (builds if not already built).

        Args:
            filepath: Output path
            part: Shape to write instead of the local solid, e.g. from placed()
        """
        if part is None:
            if self._part is None:
                self.build()
            part = self._part

        logger.info(f"Exporting {self._part_name}: volume={part.volume:.2f} mm³")
        from build123d import export_step as exp_step
        exp_step(part, filepath)

        logger.info(f"Exported {self._part_name} to {filepath}")

    def to_geometry(
        self,
        tolerance: float = TESSELLATION_TOLERANCE_MM,
        angular_tolerance: float = TESSELLATION_ANGULAR_TOLERANCE_RAD,
        part=None,
    ) -> Geometry:
        """Tessellate the solid into triangles.

        Without part this is the local solid; pass a placed() copy for world
        coordinates.
        """
        if part is None:
            if self._part is None:
                self.build()
            part = self._part

        geometry = tessellate(part, tolerance, angular_tolerance)
        logger.debug(f"Tessellated {self._part_name}: {len(geometry)} triangles")
        return geometry
