"""
Meshkin Core - Geometry values and part solids.

The polygon-list Geometry type and its operations are plain Python. The
part solids (SpurGearGeometry, RackGeometry) use build123d and are loaded
only when first accessed, so the calculator can use core.geometry without
the geometry kernel installed.

Example:
    >>> from meshkin.core import SpurGearGeometry, translate
    >>> from meshkin.io import GearParams
    >>>
    >>> gear = SpurGearGeometry(GearParams(module=1.0, teeth=20))
    >>> gear.build().export_step("pinion.step")
    >>> polygons = translate((0, 10, 0), gear.to_geometry())
"""

from .geometry import (
    Vector3,
    Polygon,
    Geometry,
    BoundingBox,
    GeometryOps,
    translate,
    rotate,
    rotate_x,
    rotate_y,
    rotate_z,
    scale,
    mirror,
    union,
    apply_pose,
    bounding_box,
    measure,
    to_dict,
    from_dict,
)

# Solids require build123d - loaded on first access
_SOLIDS = {
    "BaseGeometry": "geometry_base",
    "SpurGearGeometry": "gear",
    "RackGeometry": "rack",
}


def __getattr__(name):
    """Lazy load build123d-backed classes when accessed."""
    if name in _SOLIDS:
        import importlib
        module = importlib.import_module(f".{_SOLIDS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module 'meshkin.core' has no attribute {name!r}")


__all__ = [
    # Geometry value type
    "Vector3",
    "Polygon",
    "Geometry",
    "BoundingBox",
    "GeometryOps",
    "translate",
    "rotate",
    "rotate_x",
    "rotate_y",
    "rotate_z",
    "scale",
    "mirror",
    "union",
    "apply_pose",
    "bounding_box",
    "measure",
    "to_dict",
    "from_dict",

    # Solids (lazy loaded, require build123d)
    "BaseGeometry",
    "SpurGearGeometry",
    "RackGeometry",
]
