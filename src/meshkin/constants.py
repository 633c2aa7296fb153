"""
Engineering constants and defaults for meshing kinematics.

This module centralizes every numerical default used by the calculator,
linkage solver, and diagnostics. Functions take these as keyword defaults,
so callers override per call rather than by editing this file.

MODIFICATION GUIDELINES:
- Add new constants here rather than hardcoding in functions
- Always include units in constant names (_MM, _DEG)
- Phase shifts are never constants - they are re-derived from part metadata

Constants are grouped by category:
- Part library defaults (stock pinion and rack)
- Linkage inference
- Animation diagnostics
- Geometry generation
"""

# =============================================================================
# Part Library Defaults
# =============================================================================

# Stock pinion used when a linkage radius matches it (pitch radius 10mm)
STOCK_MODULE_MM: float = 1.0
STOCK_PINION_TEETH: int = 20

# Stock rack tooth count when no length is supplied
STOCK_RACK_TEETH: int = 20

# Default part dimensions (match the CAD part libraries)
DEFAULT_THICKNESS_MM: float = 8.0
DEFAULT_BORE_DIAMETER_MM: float = 6.0
DEFAULT_PRESSURE_ANGLE_DEG: float = 20.0
DEFAULT_RACK_CLEARANCE_MM: float = 0.0
DEFAULT_RACK_BACK_HEIGHT_MM: float = 2.0

# Standard tooth proportions (addendum = 1.0 x module, dedendum = 1.25 x module)
ADDENDUM_FACTOR: float = 1.0
DEDENDUM_FACTOR: float = 1.25

# Gear phase: a quarter of the angular tooth pitch (360/teeth), negated.
# Expressed as the numerator of -90/teeth.
QUARTER_TOOTH_PITCH_DEG: float = 90.0

# =============================================================================
# Linkage Inference
# =============================================================================

# Radius mismatch (mm) below which the stock rack+pinion pair is reused.
# Exposed as a keyword argument on linkage() - this is only the default.
LINKAGE_RADIUS_TOLERANCE_MM: float = 0.5

# Below these, a motion component counts as "not moving".
# Exposed as keyword arguments on linkage().
NEGLIGIBLE_LINEAR_DELTA_MM: float = 1e-6
NEGLIGIBLE_ROTATION_DELTA_DEG: float = 1e-6

# A body counts as sliding when the arc its rotation would roll at the stock
# pitch radius is at most this share of its linear travel
ROTATION_DOMINANCE_RATIO: float = 0.01

# Smallest idler synthesized to bridge a mismatched radius
MIN_IDLER_TEETH: int = 8

# Larger idlers mean the rotation is too small for the travel
MAX_IDLER_TEETH: int = 1000

# =============================================================================
# Animation Diagnostics
# =============================================================================

DIAGNOSTIC_SAMPLES_MIN: int = 3
DIAGNOSTIC_SAMPLES_MAX: int = 501
DIAGNOSTIC_SAMPLES_DEFAULT: int = 41

# Residual tolerance for radial, kinematic and phase checks
DIAGNOSTIC_TOLERANCE_MM: float = 0.01

# =============================================================================
# Geometry Generation
# =============================================================================

# Tessellation tolerances for polygon export
TESSELLATION_TOLERANCE_MM: float = 0.05
TESSELLATION_ANGULAR_TOLERANCE_RAD: float = 0.2

# Half a tooth may span at most this share of the pitch at the root,
# which keeps a gap between neighbouring teeth on small or coarse parts
MAX_ROOT_SPAN_FRACTION: float = 0.48
