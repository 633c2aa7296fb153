"""
Pytest configuration and shared fixtures for meshkin tests.
"""

import json
import math
import pytest

from meshkin.io.models import GearParams, KinematicModel, RackParams, coord


# ─── Part parameters ─────────────────────────────────────────────────────


@pytest.fixture
def stock_gear_params():
    """Stock pinion: module 1, 20 teeth, pitch radius 10mm."""
    return GearParams(module=1.0, teeth=20)


@pytest.fixture
def stock_rack_params():
    """Stock rack: module 1, 20 teeth."""
    return RackParams(module=1.0, teethNumber=20)


# ─── Kinematic models ────────────────────────────────────────────────────


def _passing_model_data():
    """Consistent rack and pinion: one full turn rolls one pitch circumference."""
    return {
        "module": 1.0,
        "pinionTeeth": 20,
        "pinionRotationDegPerProgress": 360.0,
        "rackTranslationMmPerProgress": 1.0 * math.pi * 20,
        "rackXAtProgress0": 0.0,
        "gearCenterAxisPosition": 10.0,
        "rackPitchAxisPosition": 0.0,
        "meshGap": 0.0,
    }


@pytest.fixture
def passing_model_data():
    """camelCase dict as the agent sends it."""
    return _passing_model_data()


@pytest.fixture
def passing_model():
    return KinematicModel.model_validate(_passing_model_data())


@pytest.fixture
def model_file(tmp_path):
    """Passing model saved as JSON."""
    path = tmp_path / "animation.json"
    path.write_text(json.dumps(_passing_model_data()))
    return path


# ─── Motions ─────────────────────────────────────────────────────────────


@pytest.fixture
def slider_and_spinner():
    """Rack slides 4mm along y while the pinion turns 50° about z (r ≈ 4.583662)."""
    motion_a = {"initial": coord(0, -2, 0), "final": coord(0, 2, 0)}
    motion_b = {"initial": coord(10, 0, 0), "final": coord(10, 0, 0, 0, 0, 50)}
    return motion_a, motion_b


@pytest.fixture
def stock_radius_motions():
    """Half a turn rolling 10*pi mm: exactly the stock pinion radius."""
    motion_a = {"initial": coord(0, 0, 0), "final": coord(10 * math.pi, 0, 0)}
    motion_b = {"initial": coord(0, 10, 0), "final": coord(0, 10, 0, 0, 0, 180)}
    return motion_a, motion_b


@pytest.fixture
def motions_file(tmp_path, slider_and_spinner):
    motion_a, motion_b = slider_and_spinner
    path = tmp_path / "motions.json"
    path.write_text(json.dumps({
        "motionA": {k: list(v) for k, v in motion_a.items()},
        "motionB": {k: list(v) for k, v in motion_b.items()},
    }))
    return path


# ─── Geometry ────────────────────────────────────────────────────────────


@pytest.fixture
def triangle():
    from meshkin.core.geometry import Geometry, Polygon
    return Geometry((Polygon(((0, 0, 0), (1, 0, 0), (0, 1, 0))),))
