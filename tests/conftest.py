"""Shared fixtures. pygame runs headless under the dummy SDL drivers."""

from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from scene_host import SceneContext


@pytest.fixture
def rng():
    return np.random.default_rng(1225)


@pytest.fixture
def context():
    return SceneContext(width=800, height=600)
