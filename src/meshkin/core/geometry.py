"""
Immutable polygon-list geometry and the operations scripts apply to it.

Geometry values exchanged with the renderer are lists of planar polygons,
serialised as {"polygons": [{"vertices": [[x, y, z], ...]}, ...]}. The
engine produces them and transforms them but never interprets faces.

Every operation returns a new Geometry; inputs are never modified. Argument
order follows the script convention, transform first and object last:

    >>> from meshkin.core.geometry import Geometry, Polygon, translate
    >>> tri = Geometry((Polygon(((0, 0, 0), (1, 0, 0), (0, 1, 0))),))
    >>> translate((0, 10, 0), tri).polygons[0].vertices[0]
    (0.0, 10.0, 0.0)
"""

from dataclasses import dataclass
from math import cos, radians, sin
from typing import Any, Dict, Iterable, Sequence, Tuple, Union

from ..errors import InvalidParameterError

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Polygon:
    vertices: Tuple[Vector3, ...]

    def __post_init__(self):
        object.__setattr__(
            self, "vertices", tuple((float(x), float(y), float(z)) for x, y, z in self.vertices)
        )


@dataclass(frozen=True)
class Geometry:
    polygons: Tuple[Polygon, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "polygons", tuple(self.polygons))

    def vertices(self) -> Iterable[Vector3]:
        for polygon in self.polygons:
            yield from polygon.vertices

    def __len__(self) -> int:
        return len(self.polygons)


@dataclass(frozen=True)
class BoundingBox:
    min: Vector3
    max: Vector3

    @property
    def dimensions(self) -> Vector3:
        return tuple(hi - lo for lo, hi in zip(self.min, self.max))

    @property
    def center(self) -> Vector3:
        return tuple((lo + hi) / 2 for lo, hi in zip(self.min, self.max))


def _map_vertices(fn, geometry: Geometry) -> Geometry:
    return Geometry(tuple(Polygon(tuple(fn(v) for v in p.vertices)) for p in geometry.polygons))


def _cos_sin(degrees: float) -> Tuple[float, float]:
    """cos/sin that are exact for quarter turns."""
    quarter, remainder = divmod(degrees, 90.0)
    if remainder == 0.0:
        return ((1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0))[int(quarter) % 4]
    a = radians(degrees)
    return cos(a), sin(a)


def _vector(value: Union[float, Sequence[float]], name: str) -> Vector3:
    if isinstance(value, (int, float)):
        return (float(value),) * 3
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise InvalidParameterError(f"{name} must have 3 components, got {len(values)}", field=name)
    return values


def translate(offset: Sequence[float], geometry: Geometry) -> Geometry:
    dx, dy, dz = _vector(offset, "offset")
    return _map_vertices(lambda v: (v[0] + dx, v[1] + dy, v[2] + dz), geometry)


def rotate_x(degrees: float, geometry: Geometry) -> Geometry:
    c, s = _cos_sin(degrees)
    return _map_vertices(lambda v: (v[0], v[1] * c - v[2] * s, v[1] * s + v[2] * c), geometry)


def rotate_y(degrees: float, geometry: Geometry) -> Geometry:
    c, s = _cos_sin(degrees)
    return _map_vertices(lambda v: (v[0] * c + v[2] * s, v[1], -v[0] * s + v[2] * c), geometry)


def rotate_z(degrees: float, geometry: Geometry) -> Geometry:
    c, s = _cos_sin(degrees)
    return _map_vertices(lambda v: (v[0] * c - v[1] * s, v[0] * s + v[1] * c, v[2]), geometry)


def rotate(angles: Sequence[float], geometry: Geometry) -> Geometry:
    """Euler rotation in degrees about the fixed X, then Y, then Z axes."""
    rx, ry, rz = _vector(angles, "angles")
    result = geometry
    if rx:
        result = rotate_x(rx, result)
    if ry:
        result = rotate_y(ry, result)
    if rz:
        result = rotate_z(rz, result)
    return result


def scale(factors: Union[float, Sequence[float]], geometry: Geometry) -> Geometry:
    sx, sy, sz = _vector(factors, "factors")
    scaled = _map_vertices(lambda v: (v[0] * sx, v[1] * sy, v[2] * sz), geometry)
    # An odd number of negative factors flips the winding
    if sx * sy * sz < 0:
        return Geometry(tuple(Polygon(p.vertices[::-1]) for p in scaled.polygons))
    return scaled


def mirror(normal: Sequence[float], geometry: Geometry) -> Geometry:
    """Reflect across the plane through the origin with the given normal."""
    nx, ny, nz = _vector(normal, "normal")
    length_sq = nx * nx + ny * ny + nz * nz
    if length_sq == 0:
        raise InvalidParameterError("mirror normal must not be zero", field="normal")

    def reflect(v: Vector3) -> Vector3:
        k = 2 * (v[0] * nx + v[1] * ny + v[2] * nz) / length_sq
        return (v[0] - k * nx, v[1] - k * ny, v[2] - k * nz)

    return Geometry(tuple(Polygon(tuple(reflect(v) for v in p.vertices)[::-1]) for p in geometry.polygons))


def union(*geometries: Geometry) -> Geometry:
    """Combine polygon lists. Boolean cleanup of overlaps is left to the renderer."""
    return Geometry(tuple(p for g in geometries for p in g.polygons))


def apply_pose(pose: Sequence[float], geometry: Geometry) -> Geometry:
    """Place geometry at [x, y, z, rx, ry, rz]: rotate about the origin, then translate."""
    values = tuple(pose)
    if len(values) not in (3, 6):
        raise InvalidParameterError(f"pose must have 3 or 6 components, got {len(values)}", field="pose")
    rotated = rotate(values[3:], geometry) if len(values) == 6 else geometry
    return translate(values[:3], rotated)


def bounding_box(geometry: Geometry) -> BoundingBox:
    points = list(geometry.vertices())
    if not points:
        raise InvalidParameterError("geometry has no vertices", field="geometry")
    xs, ys, zs = zip(*points)
    return BoundingBox((min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs)))


def measure(geometry: Geometry) -> Dict[str, Any]:
    box = bounding_box(geometry)
    return {
        'boundingBox': {'min': list(box.min), 'max': list(box.max)},
        'dimensions': list(box.dimensions),
        'center': list(box.center),
        'polygonCount': len(geometry),
    }


def to_dict(geometry: Geometry) -> Dict[str, Any]:
    return {'polygons': [{'vertices': [list(v) for v in p.vertices]} for p in geometry.polygons]}


def from_dict(data: Dict[str, Any]) -> Geometry:
    """Read the polygon-list convention. A bare list of polygons is accepted too."""
    polygons = data['polygons'] if isinstance(data, dict) else data
    return Geometry(tuple(Polygon(tuple(tuple(v) for v in p['vertices'])) for p in polygons))


class GeometryOps:
    """The operation set a script sandbox exposes, bound by reference."""
    translate = staticmethod(translate)
    rotate = staticmethod(rotate)
    rotate_x = staticmethod(rotate_x)
    rotate_y = staticmethod(rotate_y)
    rotate_z = staticmethod(rotate_z)
    scale = staticmethod(scale)
    mirror = staticmethod(mirror)
    union = staticmethod(union)
    apply_pose = staticmethod(apply_pose)
    bounding_box = staticmethod(bounding_box)
    measure = staticmethod(measure)


__all__ = [
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
]
