"""
Meshkin IO - Input models, JSON files, and script parameter inference.

Example:
    >>> from meshkin.io import KinematicModel, load_kinematic_model
    >>> from meshkin.calculator import diagnose
    >>>
    >>> model = load_kinematic_model("animation.json")
    >>> diagnose(model).passed
"""

from .models import (
    Pose6,
    coord,
    normalize_pose,
    GearParams,
    RackParams,
    MotionDescriptor,
    KinematicModel,
    LinkageRequest,
)

from .loaders import (
    SCHEMA_VERSION,
    load_kinematic_model,
    save_kinematic_model,
    load_motions,
    save_motions,
)

from .parameters import (
    ParameterDefinition,
    extract_parameters,
    parse_literal,
)

__all__ = [
    # Models
    "Pose6",
    "coord",
    "normalize_pose",
    "GearParams",
    "RackParams",
    "MotionDescriptor",
    "KinematicModel",
    "LinkageRequest",

    # Files
    "SCHEMA_VERSION",
    "load_kinematic_model",
    "save_kinematic_model",
    "load_motions",
    "save_motions",

    # Script parameters
    "ParameterDefinition",
    "extract_parameters",
    "parse_literal",
]
