"""
Error taxonomy for the meshing kinematics engine.

Errors are raised synchronously inside the library. The tool boundary
(calculator.tool_bridge) turns them into structured results so the calling
agent can re-prompt instead of crashing.
"""

from typing import Optional


class MeshKinematicsError(ValueError):
    """Base class for all engine errors.

    Attributes:
        error_type: Stable name reported at the tool boundary
        field: Offending input field, if one can be named
    """

    error_type: str = "MeshKinematicsError"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidParameterError(MeshKinematicsError):
    """Non-positive module/teeth, non-finite rates, out-of-range values."""
    error_type = "InvalidParameter"


class AmbiguousMotionError(MeshKinematicsError):
    """Translation and rotation roles cannot be told apart."""
    error_type = "AmbiguousMotion"


class DegenerateLinkageError(MeshKinematicsError):
    """Rotation delta too small to invert the rolling constraint."""
    error_type = "DegenerateLinkage"


class UnsupportedConfigurationError(MeshKinematicsError):
    """Configuration that cannot mesh, e.g. rack against rack."""
    error_type = "UnsupportedConfiguration"
