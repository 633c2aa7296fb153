"""
JSON input/output for kinematic models and motion pairs.

Files use the same camelCase keys the agent tools take, so a tool call can
be saved and replayed from the command line.

Uses Pydantic for validation and alias handling.
"""

import json
from pathlib import Path
from typing import Union

from .models import KinematicModel, LinkageRequest

SCHEMA_VERSION = "1.0"


def _read_json(filepath: Union[str, Path]) -> dict:
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{filepath} must contain a JSON object")
    return data


def _write_json(data: dict, filepath: Union[str, Path]) -> None:
    data['schemaVersion'] = SCHEMA_VERSION
    with open(Path(filepath), 'w') as f:
        json.dump(data, f, indent=2)


def load_kinematic_model(filepath: Union[str, Path]) -> KinematicModel:
    """
    Load a declared rack-and-pinion animation.

    Accepts the model at the top level or under a 'model' wrapper.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If required fields are missing or mistyped
    """
    data = _read_json(filepath)
    if 'model' in data and isinstance(data['model'], dict):
        data = data['model']
    return KinematicModel.model_validate(data)


def save_kinematic_model(model: KinematicModel, filepath: Union[str, Path]) -> None:
    data = model.model_dump(by_alias=True, exclude_none=True)
    _write_json(data, filepath)


def load_motions(filepath: Union[str, Path]) -> LinkageRequest:
    """
    Load a motion pair for linkage inference.

    The file holds {motionA: {initial, final}, motionB: {...}} plus the
    optional progress and radiusToleranceMm.
    """
    return LinkageRequest.model_validate(_read_json(filepath))


def save_motions(request: LinkageRequest, filepath: Union[str, Path]) -> None:
    data = request.model_dump(by_alias=True, exclude_none=True)
    for key in ('motionA', 'motionB'):
        data[key] = {end: list(pose) for end, pose in data[key].items()}
    _write_json(data, filepath)

