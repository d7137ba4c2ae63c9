"""Pytest configuration for shading tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate fields allocated by earlier tests.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f32)
    yield


@pytest.fixture
def default_material():
    """Material with every parameter at its default."""
    from src.toonshade.material.parameters import MaterialParameters

    return MaterialParameters()
