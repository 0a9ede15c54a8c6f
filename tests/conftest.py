"""Shared fixtures for the ant mesh tests."""

from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pytest

import mesh_solver


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def mesh() -> mesh_solver.MeshGrid:
    return mesh_solver.make_mesh(6, 20.0, center=(100.0, 100.0))
