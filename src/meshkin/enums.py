"""Type-safe enums for the meshing kinematics engine."""

from enum import Enum


class PitchAxis(Enum):
    """Axis along which two pitch features are separated"""
    X = "x"
    Y = "y"


class MeshType(Enum):
    """Which kinds of part meet at a mesh"""
    GEAR_GEAR = "gear_gear"
    GEAR_RACK = "gear_rack"
    RACK_RACK = "rack_rack"  # Never meshes directly - needs a gear between


class PartKind(Enum):
    """Part family used in an assembly"""
    GEAR = "gear"
    RACK = "rack"

