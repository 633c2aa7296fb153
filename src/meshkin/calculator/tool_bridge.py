"""
Agent-tool bridge for the meshing calculator.

Provides a single entry point for every JSON-in/JSON-out tool the calling
agent can invoke. All inputs are validated via Pydantic models before
processing, and every failure comes back as a structured result: nothing
raises across this boundary.

Usage from the agent host:
    from meshkin.calculator.tool_bridge import call_tool
    output_json = call_tool("check_animation_intersections", input_json)
    result = json.loads(output_json)
    if not result["success"]:
        ...  # re-prompt using result["errorType"] and result["field"]
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import DIAGNOSTIC_TOLERANCE_MM, STOCK_PINION_TEETH
from ..errors import InvalidParameterError, MeshKinematicsError, UnsupportedConfigurationError
from ..io.models import KinematicModel, LinkageRequest, RackParams
from ..io.parameters import extract_parameters
from .alignment import check_alignment, position_relative
from .diagnostics import diagnose
from .linkage import linkage, linkage_options
from .output import (
    alignment_to_dict,
    diagnostics_to_dict,
    linkage_to_dict,
    phase_metadata_to_dict,
    pitch_feature_to_dict,
    placement_to_dict,
    rack_phase_to_dict,
)
from .phase import gear_phase_metadata, rack_phase_metadata
from .pitch import pitch_features

logger = logging.getLogger(__name__)


# ============================================================================
# Input Models (Pydantic validation for tool arguments)
# ============================================================================

class MeasureGeometryInput(BaseModel):
    """
    measure_geometry arguments.

    {module, teeth} measures a gear, {module} (optionally with length or
    teethNumber) a rack. A polygon-list geometry can be measured on its own
    or alongside either.
    """
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    module: Optional[float] = None
    teeth: Optional[int] = None
    length: Optional[float] = None
    teeth_number: Optional[int] = Field(default=None, alias="teethNumber")
    geometry: Optional[Dict[str, Any]] = None


class PositionRelativeInput(BaseModel):
    """position_relative arguments. Only pitch_aligned placement is supported."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    target: str
    reference: str
    alignment: str = "pitch_aligned"
    target_pitch_radius: Optional[float] = Field(default=None, alias="targetPitchRadius")
    reference_pitch_radius: Optional[float] = Field(default=None, alias="referencePitchRadius")
    target_is_rack: bool = Field(default=False, alias="targetIsRack")
    reference_is_rack: bool = Field(default=False, alias="referenceIsRack")
    gap: float = 0.0
    pitch_axis: str = Field(default="y", alias="pitchAxis")


class CheckAlignmentInput(BaseModel):
    """check_alignment arguments. Only the pitch_mesh check is supported."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    check_type: str = Field(default="pitch_mesh", alias="checkType")
    pitch_radius_a: Optional[float] = Field(default=None, alias="pitchRadiusA")
    pitch_radius_b: Optional[float] = Field(default=None, alias="pitchRadiusB")
    is_rack_a: bool = Field(default=False, alias="isRackA")
    is_rack_b: bool = Field(default=False, alias="isRackB")
    pitch_axis: str = Field(default="y", alias="pitchAxis")
    gap: float = 0.0
    actual_offset: Optional[List[float]] = Field(default=None, alias="actualOffset")
    tolerance: float = DIAGNOSTIC_TOLERANCE_MM


class ExtractParametersInput(BaseModel):
    """extract_parameters arguments: the script text to scan."""
    model_config = ConfigDict(extra='ignore')

    script: str


# ============================================================================
# Tool handlers
# ============================================================================

def _measure_geometry(args: dict) -> dict:
    inputs = MeasureGeometryInput.model_validate(args)
    if inputs.module is None and inputs.geometry is None:
        raise InvalidParameterError("module or geometry is required", field="module")

    output: Dict[str, Any] = {}
    if inputs.module is not None:
        if inputs.teeth is not None:
            circle = pitch_features(inputs.module, inputs.teeth)
            output['pitchCircle'] = pitch_feature_to_dict(circle)
            output['phaseMetadata'] = phase_metadata_to_dict(gear_phase_metadata(inputs.module, inputs.teeth))
        else:
            rack_args: Dict[str, Any] = {'module': inputs.module, 'length': inputs.length}
            if inputs.teeth_number is not None:
                rack_args['teeth_number'] = inputs.teeth_number
            rack = RackParams(**rack_args)
            output['pitchLine'] = pitch_feature_to_dict(pitch_features(inputs.module))
            output['rackPhase'] = rack_phase_to_dict(rack_phase_metadata(rack))
            # Shift a stock pinion of the same module needs against this rack
            output['phaseMetadata'] = phase_metadata_to_dict(
                gear_phase_metadata(inputs.module, STOCK_PINION_TEETH), is_rack=True
            )

    if inputs.geometry is not None:
        from ..core.geometry import from_dict, measure
        try:
            geometry = from_dict(inputs.geometry)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidParameterError(f"geometry is not a polygon list: {e}", field="geometry")
        output.update(measure(geometry))

    return output


def _position_relative(args: dict) -> dict:
    inputs = PositionRelativeInput.model_validate(args)
    if inputs.alignment != "pitch_aligned":
        raise UnsupportedConfigurationError(
            f"Unsupported alignment '{inputs.alignment}'; use 'pitch_aligned'", field="alignment"
        )
    placement = position_relative(
        inputs.target,
        inputs.reference,
        target_pitch_radius=inputs.target_pitch_radius,
        reference_pitch_radius=inputs.reference_pitch_radius,
        target_is_rack=inputs.target_is_rack,
        reference_is_rack=inputs.reference_is_rack,
        gap=inputs.gap,
        pitch_axis=inputs.pitch_axis,
    )
    return placement_to_dict(placement)


def _check_alignment(args: dict) -> dict:
    inputs = CheckAlignmentInput.model_validate(args)
    if inputs.check_type != "pitch_mesh":
        raise UnsupportedConfigurationError(
            f"Unsupported checkType '{inputs.check_type}'; use 'pitch_mesh'", field="checkType"
        )
    check = check_alignment(
        inputs.pitch_radius_a,
        inputs.pitch_radius_b,
        is_rack_a=inputs.is_rack_a,
        is_rack_b=inputs.is_rack_b,
        pitch_axis=inputs.pitch_axis,
        gap=inputs.gap,
        actual_offset=inputs.actual_offset,
        tolerance=inputs.tolerance,
    )
    return alignment_to_dict(check)


def _linkage(args: dict) -> dict:
    request = LinkageRequest.model_validate(args)
    result = linkage(request.motion_a, request.motion_b, progress=request.progress, **linkage_options(request))
    return linkage_to_dict(result, include_geometry=request.include_geometry)


def _check_animation_intersections(args: dict) -> dict:
    model = KinematicModel.model_validate(args)
    return diagnostics_to_dict(diagnose(model))


def _extract_parameters(args: dict) -> dict:
    inputs = ExtractParametersInput.model_validate(args)
    definitions = extract_parameters(inputs.script)
    return {'parameters': [d.model_dump() for d in definitions]}


TOOLS: Dict[str, Callable[[dict], dict]] = {
    'measure_geometry': _measure_geometry,
    'position_relative': _position_relative,
    'check_alignment': _check_alignment,
    'linkage': _linkage,
    'check_animation_intersections': _check_animation_intersections,
    'extract_parameters': _extract_parameters,
}

_TOOL_INPUTS = {
    'measure_geometry': (
        MeasureGeometryInput,
        "Pitch circle (gear) or pitch line (rack) of a part plus library phase metadata; "
        "optionally the bounding box of a polygon-list geometry.",
    ),
    'position_relative': (
        PositionRelativeInput,
        "Pitch-aligned translation placing target so it meshes with reference.",
    ),
    'check_alignment': (
        CheckAlignmentInput,
        "Expected centre distance and offset for a gear-gear or gear-rack pitch mesh.",
    ),
    'linkage': (
        LinkageRequest,
        "Infer a rack and pinion from two motions given as coord(x, y, z) or "
        "coord(x, y, z, rotX, rotY, rotZ) endpoints; poses accept [x, y, z] or "
        "[x, y, z, rotX, rotY, rotZ].",
    ),
    'check_animation_intersections': (
        KinematicModel,
        "Check a rack-and-pinion animation for radial intersection, kinematic drift and "
        "phase misalignment; recommends recommendedAbsolutePhaseShiftMm.",
    ),
    'extract_parameters': (
        ExtractParametersInput,
        "Parameter definitions declared by a script's getParameterDefinitions().",
    ),
}

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        'name': name,
        'description': description,
        'input_schema': model.model_json_schema(by_alias=True),
    }
    for name, (model, description) in _TOOL_INPUTS.items()
]


# ============================================================================
# Main Entry Points
# ============================================================================

def _failure(error: str, error_type: str, field: Optional[str] = None) -> dict:
    return {'success': False, 'error': error, 'errorType': error_type, 'field': field}


def handle_tool(name: str, args: Optional[dict]) -> dict:
    """
    Run one tool on already-decoded arguments.

    Args:
        name: Tool name (see TOOLS)
        args: Tool arguments, camelCase keys

    Returns:
        {success: True, output} or {success: False, error, errorType, field}
    """
    handler = TOOLS.get(name)
    if handler is None:
        logger.warning(f"Unknown tool requested: {name}")
        return _failure(f"Unknown tool: {name}", "UnknownTool")
    if args is None:
        args = {}
    if not isinstance(args, dict):
        return _failure(f"{name} arguments must be a JSON object", InvalidParameterError.error_type)

    try:
        return {'success': True, 'output': handler(args)}

    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get('loc', ())) or None
        logger.warning(f"{name}: invalid arguments ({field}): {first.get('msg')}")
        return _failure(
            f"Invalid {field or 'input'}: {first.get('msg')}", InvalidParameterError.error_type, field
        )

    except MeshKinematicsError as e:
        logger.warning(f"{name}: {e.error_type}: {e}")
        return _failure(str(e), e.error_type, e.field)

    except Exception as e:
        logger.exception(f"{name}: unexpected failure")
        return _failure(str(e), "InternalError")


def call_tool(name: str, input_json: str) -> str:
    """
    Single entry point for all tool calls from the agent host.

    Args:
        name: Tool name
        input_json: JSON object with the tool arguments

    Returns:
        JSON string: {success, output} or {success: false, error, errorType, field}
    """
    try:
        args = json.loads(input_json) if input_json else {}
    except json.JSONDecodeError as e:
        logger.warning(f"{name}: invalid JSON input: {e}")
        return json.dumps(_failure(f"Invalid JSON: {e}", InvalidParameterError.error_type, "input"))

    return json.dumps(handle_tool(name, args))
