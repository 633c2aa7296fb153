"""
Command-line interface for the meshing kinematics engine.

Every subcommand goes through the same tool bridge the agent uses, so the
command line and the agent see identical JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from ..calculator.diagnostics import apply_phase_correction, diagnose
from ..calculator.linkage import linkage, linkage_options
from ..calculator.output import to_summary
from ..calculator.tool_bridge import TOOL_DEFINITIONS, handle_tool
from ..constants import LINKAGE_RADIUS_TOLERANCE_MM, NEGLIGIBLE_LINEAR_DELTA_MM, NEGLIGIBLE_ROTATION_DELTA_DEG
from ..errors import MeshKinematicsError
from ..io.loaders import load_kinematic_model, load_motions, save_kinematic_model

logger = logging.getLogger(__name__)


def _emit(result: dict) -> int:
    """Print a tool result: output to stdout, or the error to stderr."""
    if result.get('success'):
        print(json.dumps(result['output'], indent=2))
        return 0
    print(json.dumps(result, indent=2), file=sys.stderr)
    return 1


def _fail(error: str, error_type: str, field=None) -> int:
    return _emit({'success': False, 'error': error, 'errorType': error_type, 'field': field})


def cmd_measure(args) -> int:
    tool_args = {'module': args.module}
    if args.teeth is not None:
        tool_args['teeth'] = args.teeth
    if args.length is not None:
        tool_args['length'] = args.length
    if args.teeth_number is not None:
        tool_args['teethNumber'] = args.teeth_number
    return _emit(handle_tool('measure_geometry', tool_args))


def cmd_place(args) -> int:
    return _emit(handle_tool('position_relative', {
        'target': args.target,
        'reference': args.reference,
        'targetPitchRadius': args.target_radius,
        'referencePitchRadius': args.reference_radius,
        'targetIsRack': args.target_rack,
        'referenceIsRack': args.reference_rack,
        'gap': args.gap,
        'pitchAxis': args.axis,
    }))


def cmd_check(args) -> int:
    tool_args = {
        'pitchRadiusA': args.radius_a,
        'pitchRadiusB': args.radius_b,
        'isRackA': args.rack_a,
        'isRackB': args.rack_b,
        'gap': args.gap,
        'pitchAxis': args.axis,
    }
    if args.actual_offset is not None:
        tool_args['actualOffset'] = args.actual_offset
    return _emit(handle_tool('check_alignment', tool_args))


def cmd_linkage(args) -> int:
    try:
        request = load_motions(args.motions_file)
    except (OSError, ValueError) as e:
        return _load_failure(args.motions_file, e)
    request = request.model_copy(update=_option_overrides(args))
    progress = args.progress if args.progress is not None else request.progress

    if not args.summary:
        tool_args = request.model_dump(by_alias=True)
        tool_args['progress'] = progress
        tool_args['includeGeometry'] = args.include_geometry or request.include_geometry
        return _emit(handle_tool('linkage', tool_args))

    try:
        result = linkage(request.motion_a, request.motion_b, progress=progress, **linkage_options(request))
    except MeshKinematicsError as e:
        return _fail(str(e), e.error_type, e.field)
    print(to_summary(result))
    return 0


def _option_overrides(args) -> dict:
    """Solver options given on the command line, as LinkageRequest fields."""
    options = {
        'radius_tolerance_mm': args.radius_tolerance,
        'linear_epsilon_mm': args.linear_epsilon,
        'rotation_epsilon_deg': args.rotation_epsilon,
    }
    return {key: value for key, value in options.items() if value is not None}


def cmd_diagnose(args) -> int:
    try:
        model = load_kinematic_model(args.model_file)
    except (OSError, ValueError) as e:
        return _load_failure(args.model_file, e)

    updates = {}
    if args.samples is not None:
        updates['samples'] = args.samples
    if args.tolerance is not None:
        updates['tolerance'] = args.tolerance
    if updates:
        model = model.model_copy(update=updates)

    if args.fix:
        try:
            fixed = apply_phase_correction(model)
        except MeshKinematicsError as e:
            return _fail(str(e), e.error_type, e.field)
        save_kinematic_model(fixed, args.fix)
        logger.info(f"Saved phase-corrected model to {args.fix}")

    if args.summary:
        try:
            result = diagnose(model)
        except MeshKinematicsError as e:
            return _fail(str(e), e.error_type, e.field)
        print(to_summary(result))
        return 0 if result.passed else 2

    return _emit(handle_tool('check_animation_intersections', model.model_dump(by_alias=True)))


def cmd_params(args) -> int:
    try:
        script = Path(args.script_file).read_text()
    except OSError as e:
        return _fail(f"Cannot read {args.script_file}: {e}", "InvalidParameter", "script")
    return _emit(handle_tool('extract_parameters', {'script': script}))


def cmd_tool(args) -> int:
    if args.list:
        print(json.dumps(TOOL_DEFINITIONS, indent=2))
        return 0
    if not args.name:
        return _fail("Tool name is required (or use --list)", "InvalidParameter", "name")

    raw = sys.stdin.read() if args.input == '-' else (args.input or '{}')
    try:
        tool_args = json.loads(raw)
    except json.JSONDecodeError as e:
        return _fail(f"Invalid JSON: {e}", "InvalidParameter", "input")
    return _emit(handle_tool(args.name, tool_args))


def cmd_build(args) -> int:
    """Export each part of an inferred linkage to STEP (requires build123d)."""
    try:
        request = load_motions(args.motions_file)
        result = linkage(
            request.motion_a,
            request.motion_b,
            progress=request.progress,
            **linkage_options(request),
        )
    except (OSError, ValueError) as e:
        if isinstance(e, MeshKinematicsError):
            return _fail(str(e), e.error_type, e.field)
        return _load_failure(args.motions_file, e)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    for part in result.assembly:
        step_path = output_dir / f"{part.name}.step"
        builder = part.builder()
        builder.export_step(str(step_path), part=builder.placed(part.orientation, part.pose))
        print(f"{part.name}: {step_path} (pose {list(part.pose)}, orientation {list(part.orientation)})")
    return 0


def _load_failure(path, error: Exception) -> int:
    if isinstance(error, ValidationError):
        first = error.errors()[0]
        field = ".".join(str(p) for p in first.get('loc', ())) or None
        return _fail(f"Invalid {field or 'input'} in {path}: {first.get('msg')}", "InvalidParameter", field)
    return _fail(f"Error loading {path}: {error}", "InvalidParameter", "file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshkin",
        description="Pitch geometry, linkage inference, and animation checks for gears and racks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pitch circle and phase metadata of a 20-tooth module 1 pinion
  meshkin measure --module 1 --teeth 20

  # Where to put a pinion so it meshes with a rack
  meshkin place pinion rack --target-radius 10 --reference-rack

  # Infer a rack and pinion from two motions
  meshkin linkage motions.json --summary

  # Check an animation and save the phase-corrected model
  meshkin diagnose animation.json --fix animation_fixed.json

  # Run any agent tool directly
  echo '{"module": 1, "teeth": 20}' | meshkin tool measure_geometry -
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('measure', help='Pitch features and phase metadata of a gear or rack')
    p.add_argument('--module', type=float, required=True, help='Module in mm')
    p.add_argument('--teeth', type=int, default=None, help='Gear tooth count (omit for a rack)')
    p.add_argument('--length', type=float, default=None, help='Rack length in mm')
    p.add_argument('--teeth-number', type=int, default=None, help='Rack tooth count')
    p.set_defaults(func=cmd_measure)

    p = sub.add_parser('place', help='Pitch-aligned placement of target against reference')
    p.add_argument('target')
    p.add_argument('reference')
    p.add_argument('--target-radius', type=float, default=None, help='Target pitch radius in mm')
    p.add_argument('--reference-radius', type=float, default=None, help='Reference pitch radius in mm')
    p.add_argument('--target-rack', action='store_true', help='Target is a rack')
    p.add_argument('--reference-rack', action='store_true', help='Reference is a rack')
    p.add_argument('--gap', type=float, default=0.0, help='Clearance between pitch features in mm')
    p.add_argument('--axis', choices=['x', 'y'], default='y', help='Pitch axis (default: y)')
    p.set_defaults(func=cmd_place)

    p = sub.add_parser('check', help='Expected pitch mesh distance of two parts')
    p.add_argument('--radius-a', type=float, default=None, help='Pitch radius of part A in mm')
    p.add_argument('--radius-b', type=float, default=None, help='Pitch radius of part B in mm')
    p.add_argument('--rack-a', action='store_true', help='Part A is a rack')
    p.add_argument('--rack-b', action='store_true', help='Part B is a rack')
    p.add_argument('--gap', type=float, default=0.0, help='Clearance in mm')
    p.add_argument('--axis', choices=['x', 'y'], default='y', help='Pitch axis (default: y)')
    p.add_argument('--actual-offset', type=float, nargs=3, default=None, metavar=('X', 'Y', 'Z'),
                   help='Measured offset of B relative to A')
    p.set_defaults(func=cmd_check)

    p = sub.add_parser('linkage', help='Infer a rack and pinion from a motion pair file')
    p.add_argument('motions_file', help='JSON with motionA and motionB')
    p.add_argument('--progress', type=float, default=None, help='Progress in [0, 1] (default: 1)')
    p.add_argument('--radius-tolerance', type=float, default=None,
                   help=f'Radius mismatch before an idler is inserted (default: {LINKAGE_RADIUS_TOLERANCE_MM}mm)')
    p.add_argument('--linear-epsilon', type=float, default=None,
                   help=f'Travel that counts as not moving (default: {NEGLIGIBLE_LINEAR_DELTA_MM:g}mm)')
    p.add_argument('--rotation-epsilon', type=float, default=None,
                   help=f'Rotation that counts as not turning (default: {NEGLIGIBLE_ROTATION_DELTA_DEG:g}deg)')
    p.add_argument('--include-geometry', action='store_true', help='Include polygons (requires build123d)')
    p.add_argument('--summary', action='store_true', help='Print a text summary instead of JSON')
    p.set_defaults(func=cmd_linkage)

    p = sub.add_parser('diagnose', help='Check a declared animation for intersections, drift and phase')
    p.add_argument('model_file', help='JSON KinematicModel')
    p.add_argument('--samples', type=int, default=None, help='Phase samples (clamped to 3..501)')
    p.add_argument('--tolerance', type=float, default=None, help='Residual tolerance in mm')
    p.add_argument('--fix', default=None, metavar='OUT', help='Save the phase-corrected model to OUT')
    p.add_argument('--summary', action='store_true', help='Print a text summary (exit 2 on FAIL)')
    p.set_defaults(func=cmd_diagnose)

    p = sub.add_parser('params', help='Parameter definitions declared by a script')
    p.add_argument('script_file')
    p.set_defaults(func=cmd_params)

    p = sub.add_parser('tool', help='Run an agent tool on JSON arguments')
    p.add_argument('name', nargs='?', help='Tool name')
    p.add_argument('input', nargs='?', help="JSON arguments, or '-' for stdin")
    p.add_argument('--list', action='store_true', help='Print the tool definitions')
    p.set_defaults(func=cmd_tool)

    p = sub.add_parser('build', help='Export the parts of an inferred linkage as STEP files')
    p.add_argument('motions_file', help='JSON with motionA and motionB')
    p.add_argument('-o', '--output-dir', default='.', help='Output directory (default: current directory)')
    p.set_defaults(func=cmd_build)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
