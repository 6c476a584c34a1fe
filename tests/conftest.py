"""Test bootstrap: ensure package root is on sys.path.

This allows absolute imports like `core.pathfinding` and `modules.maps.components`
which assume the working directory is the repository root.
"""
import sys, os
PACKAGE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PACKAGE_ROOT not in sys.path:
    sys.path.insert(0, PACKAGE_ROOT)

import pytest

from core.event_bus import EventBus
from core.pathfinding import Pathfinder
from modules.maps.components import TileGrid
from modules.maps.terrain_types import TerrainTable
from modules.movement.system import MovementSystem


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def terrain():
    return TerrainTable()


@pytest.fixture
def grid(event_bus):
    """Empty 10x10 grass grid with 32px tiles."""
    return TileGrid(10, 10, tile_size=32, event_bus=event_bus)


@pytest.fixture
def pathfinder(grid, terrain):
    return Pathfinder(grid, terrain)


@pytest.fixture
def movement(grid, terrain, event_bus):
    return MovementSystem(grid, terrain, event_bus=event_bus)
