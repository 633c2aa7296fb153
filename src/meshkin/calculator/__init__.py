"""
Meshing Calculator - Pitch geometry, linkage inference, and animation checks.

Pure math: nothing here imports the geometry kernel, so the calculator can
serve agent tool calls without build123d loaded.

Example:
    >>> from meshkin.calculator import pitch_features, linkage, coord
    >>>
    >>> pitch_features(module=1.0, teeth=20).radius
    10.0
    >>> result = linkage(
    ...     {"initial": coord(0, -2, 0), "final": coord(0, 2, 0)},
    ...     {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)},
    ... )
    >>> len(result.assembly)  # rack, idler, pinion
    3
"""

from .pitch import (
    PitchCircle,
    PitchLine,
    PitchFeature,
    circular_pitch,
    pitch_features,
    gear_pitch_features,
    rack_pitch_features,
    rack_effective_teeth,
    gear_params_from_diameter,
)

from .phase import (
    GearPhaseMetadata,
    RackPhaseMetadata,
    gear_phase_metadata,
    rack_phase_metadata,
    phase_metadata,
    library_rack_phase_shift_mm,
)

from .alignment import (
    PlacementResult,
    AlignmentCheck,
    position_relative,
    check_alignment,
    classify_mesh,
)

from .linkage import (
    AxisDelta,
    AssemblyPart,
    LinkageClassification,
    LinkageResult,
    classify_motions,
    coord,
    interpolate_pose,
    linkage,
    motion_deltas,
    synthesize_idler,
)

from .diagnostics import (
    DiagnosticsResult,
    PitchModel,
    RadialCheck,
    KinematicCheck,
    PhaseCheck,
    USAGE_NOTE,
    apply_phase_correction,
    clamp_samples,
    diagnose,
)

from .validation import (
    Severity,
    ValidationMessage,
)

from .output import (
    to_json,
    to_summary,
    diagnostics_to_dict,
    linkage_to_dict,
)

__all__ = [
    # Pitch features
    "PitchCircle",
    "PitchLine",
    "PitchFeature",
    "circular_pitch",
    "pitch_features",
    "gear_pitch_features",
    "rack_pitch_features",
    "rack_effective_teeth",
    "gear_params_from_diameter",

    # Phase metadata
    "GearPhaseMetadata",
    "RackPhaseMetadata",
    "gear_phase_metadata",
    "rack_phase_metadata",
    "phase_metadata",
    "library_rack_phase_shift_mm",

    # Alignment
    "PlacementResult",
    "AlignmentCheck",
    "position_relative",
    "check_alignment",
    "classify_mesh",

    # Linkage
    "AxisDelta",
    "AssemblyPart",
    "LinkageClassification",
    "LinkageResult",
    "classify_motions",
    "coord",
    "interpolate_pose",
    "linkage",
    "motion_deltas",
    "synthesize_idler",

    # Diagnostics
    "DiagnosticsResult",
    "PitchModel",
    "RadialCheck",
    "KinematicCheck",
    "PhaseCheck",
    "USAGE_NOTE",
    "apply_phase_correction",
    "clamp_samples",
    "diagnose",

    # Validation
    "Severity",
    "ValidationMessage",

    # Output
    "to_json",
    "to_summary",
    "diagnostics_to_dict",
    "linkage_to_dict",
]
