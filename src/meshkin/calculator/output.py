"""Output formatters for meshing results.

Converts the calculator's dataclasses into the camelCase dicts the calling
agent reads, plus a plain-text summary for the command line. Field names
here are the wire format: change them only together with the agent prompts.
"""

import json
from typing import List, Union

from .alignment import AlignmentCheck, PlacementResult
from .diagnostics import DiagnosticsResult
from .linkage import AssemblyPart, LinkageResult
from .phase import GearPhaseMetadata, RackPhaseMetadata
from .pitch import PitchCircle, PitchLine
from .validation import ValidationMessage
from ..enums import MeshType, PartKind


def validation_message_to_dict(msg: ValidationMessage) -> dict:
    return {
        'severity': msg.severity.value,
        'code': msg.code,
        'message': msg.message,
        'suggestion': msg.suggestion,
    }


def pitch_feature_to_dict(feature: Union[PitchCircle, PitchLine]) -> dict:
    if isinstance(feature, PitchCircle):
        return {
            'type': feature.type,
            'module': feature.module,
            'teeth': feature.teeth,
            'pitchDiameter': feature.diameter,
            'pitchRadius': feature.radius,
        }
    return {
        'type': feature.type,
        'module': feature.module,
        'point': list(feature.point),
        'direction': list(feature.direction),
        'normal': list(feature.normal),
    }


def phase_metadata_to_dict(gear_phase: GearPhaseMetadata, is_rack: bool = False) -> dict:
    """Phase metadata block of measure_geometry.

    A rack has no tooth phase offset of its own; its recommended shift is
    the one the stock pinion of the same module needs.
    """
    return {
        'gearLibraryInitialToothPhaseOffsetDegrees': None if is_rack else gear_phase.initial_tooth_phase_offset_deg,
        'toothPitchDegrees': None if is_rack else gear_phase.tooth_pitch_deg,
        'recommendedRackShiftAtStartMm': gear_phase.recommended_rack_shift_at_start_mm,
        'recommendedRackShiftAtStartPitchFraction': gear_phase.recommended_rack_shift_at_start_pitch_fraction,
    }


def rack_phase_to_dict(meta: RackPhaseMetadata) -> dict:
    return {
        'referenceToothCenterAtStart': meta.reference_tooth_center_at_start,
        'effectiveTeethNumber': meta.effective_teeth_number,
        'effectiveLength': meta.effective_length,
        'phaseOrigin': list(meta.phase_origin),
    }


def placement_to_dict(placement: PlacementResult) -> dict:
    return {
        'translateExpression': placement.translate_expression,
        'explanation': placement.explanation,
        'offsetVector': list(placement.offset_vector),
        'distance': placement.distance,
        'meshType': placement.mesh_type.value,
    }


def alignment_to_dict(check: AlignmentCheck) -> dict:
    """pitchMesh block; gear pairs report expectedCenterDistance, racks expectedDistance."""
    mesh = {'type': check.mesh_type.value, 'valid': check.valid}
    if check.expected_distance is not None:
        key = 'expectedCenterDistance' if check.mesh_type == MeshType.GEAR_GEAR else 'expectedDistance'
        mesh[key] = check.expected_distance
        mesh['expectedOffsetVector'] = list(check.expected_offset_vector)
        mesh['actualDistance'] = check.actual_distance
        mesh['residual'] = check.residual
        if check.aligned is not None:
            mesh['aligned'] = check.aligned
    mesh['description'] = check.description
    return {'pitchMesh': mesh}


def assembly_part_to_dict(part: AssemblyPart, include_geometry: bool = False) -> dict:
    params = part.params.model_dump(by_alias=True)
    part_dict = {
        'name': part.name,
        'kind': part.kind.value,
        'params': params,
        'pose': list(part.pose),
        'orientation': list(part.orientation),
        'phaseOffsetDeg': part.phase_offset,
        'meshWith': part.mesh_with,
        'shaftWith': part.shaft_with,
    }
    if part.kind == PartKind.GEAR:
        part_dict['pitchRadius'] = part.params.module * part.params.teeth / 2
    if include_geometry:
        from ..core.geometry import to_dict
        part_dict['geometry'] = to_dict(part.build_geometry())
    return part_dict


def linkage_to_dict(result: LinkageResult, include_geometry: bool = False) -> dict:
    """LinkageResult as JSON. Polygons are only built when asked for."""
    return {
        'pitchRadius': result.pitch_radius,
        'translation': {
            'axis': result.translation.axis,
            'delta': result.translation.delta,
            'source': result.translation.source,
        },
        'rotation': {
            'axis': result.rotation.axis,
            'delta': result.rotation.delta,
            'source': result.rotation.source,
        },
        'classification': {
            'translationSource': result.classification.translation_source,
            'rotationSource': result.classification.rotation_source,
        },
        'usesIdler': result.uses_idler,
        'stockPitchRadius': result.stock_pitch_radius,
        'radiusToleranceMm': result.radius_tolerance_mm,
        'progress': result.progress,
        'formula': 'pitchRadius = abs(linearDeltaMm / rotationDeltaRad)',
        'assembly': [assembly_part_to_dict(p, include_geometry) for p in result.assembly],
    }


def diagnostics_to_dict(result: DiagnosticsResult) -> dict:
    pm = result.pitch_model
    rc = result.radial_check
    kc = result.kinematic_check
    ph = result.phase
    return {
        'pass': result.passed,
        'tolerance': result.tolerance,
        'pitchModel': {
            'module': pm.module,
            'pinionTeeth': pm.pinion_teeth,
            'circularPitch': pm.circular_pitch,
            'pitchCircumference': pm.pitch_circumference,
            'pitchRadius': pm.pitch_radius,
        },
        'radialCheck': {
            'pitchAxis': rc.pitch_axis.value,
            'gearCenterAxisPosition': rc.gear_center_axis_position,
            'rackPitchAxisPosition': rc.rack_pitch_axis_position,
            'meshGap': rc.mesh_gap,
            'actualCenterDistance': rc.actual_center_distance,
            'expectedCenterDistance': rc.expected_center_distance,
            'residual': rc.residual,
            'hasRadialIntersectionRisk': rc.has_radial_intersection_risk,
        },
        'kinematicCheck': {
            'declaredPinionRotationDegPerProgress': kc.declared_pinion_rotation_deg_per_progress,
            'declaredRackTranslationMmPerProgress': kc.declared_rack_translation_mm_per_progress,
            'expectedTranslationMmPerProgress': kc.expected_translation_mm_per_progress,
            'translationResidual': kc.translation_residual,
            'hasKinematicDrift': kc.has_kinematic_drift,
        },
        'phase': {
            'centeredStart': ph.centered_start,
            'libraryPhaseShiftMm': ph.library_phase_shift_mm,
            'libraryPhaseShiftSource': 'gearPhaseMetadata.recommendedRackShiftAtStartMm',
            'userPhaseShiftMm': ph.user_phase_shift_mm,
            'declaredRackXAtProgress0': ph.declared_rack_x_at_progress0,
            'expectedRackXAtProgress0': ph.expected_rack_x_at_progress0,
            'phaseResidualAtStart': ph.phase_residual_at_start,
            'maxAbsPhaseResidual': ph.max_abs_phase_residual,
            'worstProgress': ph.worst_progress,
            'samples': ph.samples,
            'hasPhaseMisalignment': ph.has_phase_misalignment,
            'recommendedAdditionalPhaseShiftMm': ph.recommended_additional_phase_shift_mm,
            'recommendedAbsolutePhaseShiftMm': ph.recommended_absolute_phase_shift_mm,
        },
        'diagnostics': [validation_message_to_dict(m) for m in result.diagnostics],
        'usageNote': result.usage_note,
    }


def to_json(data: dict, indent: int = 2) -> str:
    return json.dumps(data, indent=indent)


def to_summary(result: Union[DiagnosticsResult, LinkageResult]) -> str:
    """Convert a diagnostics or linkage result to a formatted text summary."""
    if isinstance(result, LinkageResult):
        return _linkage_summary(result)

    pm = result.pitch_model
    rc = result.radial_check
    kc = result.kinematic_check
    ph = result.phase

    lines = [
        "═══ Rack & Pinion Animation ═══",
        f"Module: {pm.module:.3f} mm | Pinion teeth: {pm.pinion_teeth}",
        f"Pitch radius: {pm.pitch_radius:.3f} mm",
        "",
        "Radial:",
        f"  Centre distance:   {rc.actual_center_distance:.3f} mm (expected {rc.expected_center_distance:.3f} mm)",
        f"  Intersection risk: {'YES' if rc.has_radial_intersection_risk else 'no'}",
        "",
        "Kinematic:",
        f"  Translation rate:  {kc.declared_rack_translation_mm_per_progress:.4f} mm/progress "
        f"(expected {kc.expected_translation_mm_per_progress:.4f})",
        f"  Drift:             {'YES' if kc.has_kinematic_drift else 'no'}",
        "",
        "Phase:",
        f"  Start residual:    {ph.phase_residual_at_start:+.4f} mm",
        f"  Worst residual:    {ph.max_abs_phase_residual:.4f} mm at progress {ph.worst_progress:.3f}",
        f"  Misaligned:        {'YES' if ph.has_phase_misalignment else 'no'}",
        f"  Recommended shift: {ph.recommended_absolute_phase_shift_mm:.4f} mm absolute "
        f"({ph.recommended_additional_phase_shift_mm:+.4f} mm additional)",
        "",
        f"Result: {'PASS' if result.passed else 'FAIL'}",
    ]

    findings = [m for m in result.diagnostics if m.code != "MESH_CONSISTENT"]
    if findings:
        lines.append("")
        for msg in findings:
            lines.append(f"  [{msg.severity.value.upper()}] {msg.message}")
            if msg.suggestion:
                lines.append(f"      → {msg.suggestion}")

    return "\n".join(lines)


def _linkage_summary(result: LinkageResult) -> str:
    lines: List[str] = [
        "═══ Rack & Pinion Linkage ═══",
        f"Translation: {result.translation.delta:g} mm along {result.translation.axis} "
        f"({result.classification.translation_source})",
        f"Rotation:    {result.rotation.delta:g}° about {result.rotation.axis} "
        f"({result.classification.rotation_source})",
        f"Pitch radius: {result.pitch_radius:.6f} mm (stock {result.stock_pitch_radius:g} mm)",
        f"Assembly: {', '.join(p.name for p in result.assembly)}"
        + (" (idler inserted)" if result.uses_idler else ""),
    ]
    for part in result.assembly:
        pose = ", ".join(f"{v:.3f}" for v in part.pose)
        lines.append(f"  {part.name:<7} [{pose}]")
    return "\n".join(lines)
