import os
import random
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import loop_core  # noqa: E402


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def filled_grid(rng):
    grid = loop_core.create_grid(8, 6)
    assert loop_core.fill_all(grid, rng=rng)
    return grid
