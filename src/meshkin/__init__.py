"""
Meshkin - Meshing kinematics for gear and rack assemblies.

Pitch geometry and phase metadata for parts, rack-and-pinion inference from
two body motions, and consistency checks for progress-driven animations.

Example:
    >>> from meshkin.calculator import pitch_features, diagnose
    >>> from meshkin.io import KinematicModel
    >>> from math import pi
    >>>
    >>> pitch_features(module=1.0, teeth=20).radius
    10.0
    >>> model = KinematicModel(
    ...     module=1.0, pinionTeeth=20,
    ...     pinionRotationDegPerProgress=360, rackTranslationMmPerProgress=pi * 20,
    ...     gearCenterAxisPosition=10,
    ... )
    >>> diagnose(model).passed
    True

Note: All imports are lazy-loaded for fast startup. The calculator can be
imported without triggering geometry (build123d) imports.
"""

__version__ = "0.1.0"

# Define which names come from which submodule
# All imports are lazy to minimize startup time

_ENUMS = {"PitchAxis", "MeshType", "PartKind"}

_ERRORS = {
    "MeshKinematicsError",
    "InvalidParameterError",
    "AmbiguousMotionError",
    "DegenerateLinkageError",
    "UnsupportedConfigurationError",
}

_CALCULATOR = {
    "pitch_features",
    "gear_phase_metadata",
    "rack_phase_metadata",
    "phase_metadata",
    "position_relative",
    "check_alignment",
    "linkage",
    "diagnose",
    "apply_phase_correction",
    "Severity",
    "ValidationMessage",
}

_IO = {
    "coord",
    "GearParams",
    "RackParams",
    "MotionDescriptor",
    "KinematicModel",
    "extract_parameters",
    "load_kinematic_model",
    "save_kinematic_model",
}

_CORE = {
    "Geometry",
    "Polygon",
    "GeometryOps",
    "SpurGearGeometry",
    "RackGeometry",
}

# Cache for lazy-loaded modules
_modules = {}


def __getattr__(name):
    """Lazy load submodules when their attributes are accessed."""
    global _modules

    for names, submodule in (
        (_ENUMS, "enums"),
        (_ERRORS, "errors"),
        (_CALCULATOR, "calculator"),
        (_IO, "io"),
        (_CORE, "core"),
    ):
        if name in names:
            if submodule not in _modules:
                import importlib
                _modules[submodule] = importlib.import_module(f".{submodule}", __name__)
            return getattr(_modules[submodule], name)

    raise AttributeError(f"module 'meshkin' has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",

    # Enums
    "PitchAxis",
    "MeshType",
    "PartKind",

    # Errors
    "MeshKinematicsError",
    "InvalidParameterError",
    "AmbiguousMotionError",
    "DegenerateLinkageError",
    "UnsupportedConfigurationError",

    # Calculator
    "pitch_features",
    "gear_phase_metadata",
    "rack_phase_metadata",
    "phase_metadata",
    "position_relative",
    "check_alignment",
    "linkage",
    "diagnose",
    "apply_phase_correction",
    "Severity",
    "ValidationMessage",

    # IO
    "coord",
    "GearParams",
    "RackParams",
    "MotionDescriptor",
    "KinematicModel",
    "extract_parameters",
    "load_kinematic_model",
    "save_kinematic_model",

    # Core (solids require build123d)
    "Geometry",
    "Polygon",
    "GeometryOps",
    "SpurGearGeometry",
    "RackGeometry",
]
