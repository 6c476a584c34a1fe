"""Registry of AI-controlled units living on a :class:`TileGrid`.

The manager owns unit creation and removal, keeps a per-tile spatial index
and routes movement requests through the shared :class:`MovementSystem`, so
units follow exactly the same path-following rules as the player.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Set, Tuple

from entities.movable import center_on
from entities.unit import UNIT_SIZE, UNIT_MOVE_SPEED, UNIT_TYPE_DEFINITIONS, Unit, UnitType
from modules.movement.system import MovementSystem
from utils.logger import get_logger, log_calls

logger = get_logger(__name__)


class UnitError(Exception):
    """Base class for unit management failures."""


class UnitNotFoundError(UnitError, KeyError):
    def __init__(self, unit_id: str):
        super().__init__(f"unit not found: {unit_id}")
        self.unit_id = unit_id

    def __str__(self) -> str:
        return self.args[0]


class UnitPlacementError(UnitError, ValueError):
    """Raised when a unit cannot be placed on the requested tile."""

    def __init__(self, tile: Tuple[int, int], reason: str):
        super().__init__(f"cannot place unit at {tile}: {reason}")
        self.tile = tile
        self.reason = reason


class UnknownUnitTypeError(UnitError, ValueError):
    pass


class UnitStateError(UnitError):
    """Raised when the unit's state forbids the request (e.g. it is dead)."""


class UnitManager:
    """Creates, moves and tracks units.

    Args:
        movement: Movement system shared with the rest of the game; its grid
            and terrain table decide where units may stand.
        unit_size: Edge length of a unit's bounding box in world units.
        unit_speed: Base move speed given to new units.
    """

    def __init__(
        self,
        movement: MovementSystem,
        *,
        unit_size: float = UNIT_SIZE,
        unit_speed: float = UNIT_MOVE_SPEED,
    ) -> None:
        self.movement = movement
        self.grid = movement.grid
        self.terrain = movement.terrain
        self.unit_size = unit_size
        self.unit_speed = unit_speed
        self._units: Dict[str, Unit] = {}
        self._by_tile: Dict[Tuple[int, int], Set[str]] = defaultdict(set)
        self._next_id = 1

    @classmethod
    def from_config(cls, movement: MovementSystem, config) -> "UnitManager":
        return cls(
            movement,
            unit_size=float(config.get("movement", "unit_size", default=UNIT_SIZE)),
            unit_speed=float(config.get("movement", "unit_move_speed", default=UNIT_MOVE_SPEED)),
        )

    # --- Spatial index ----------------------------------------------------------
    def _index_add(self, unit: Unit) -> None:
        self._by_tile[unit.tile].add(unit.id)

    def _index_remove(self, unit: Unit, tile: Tuple[int, int]) -> None:
        ids = self._by_tile.get(tile)
        if not ids:
            return
        ids.discard(unit.id)
        if not ids:
            del self._by_tile[tile]

    def _validate_position(self, tile_x: int, tile_y: int) -> None:
        tile = (tile_x, tile_y)
        if not self.grid.in_bounds(tile_x, tile_y):
            raise UnitPlacementError(tile, "out of bounds")
        if not self.terrain.is_walkable(self.grid.get_tile(tile_x, tile_y)):
            raise UnitPlacementError(tile, "tile is not walkable")
        if self.is_position_occupied(tile_x, tile_y):
            raise UnitPlacementError(tile, "tile already occupied")

    # --- Public API -------------------------------------------------------------
    @log_calls
    def create_unit(self, unit_type, tile_x: int, tile_y: int, name: Optional[str] = None) -> Unit:
        """Create a unit centred on ``(tile_x, tile_y)`` and register it."""

        try:
            unit_type = UnitType(unit_type)
        except ValueError:
            raise UnknownUnitTypeError(f"unknown unit type: {unit_type!r}") from None
        if unit_type not in UNIT_TYPE_DEFINITIONS:
            raise UnknownUnitTypeError(f"unknown unit type: {unit_type!r}")

        self._validate_position(tile_x, tile_y)

        number = self._next_id
        self._next_id += 1
        unit = Unit(
            id=f"unit_{number}",
            unit_type=unit_type,
            name=name or f"{UNIT_TYPE_DEFINITIONS[unit_type].name} #{number}",
            tile_x=tile_x,
            tile_y=tile_y,
            width=self.unit_size,
            height=self.unit_size,
            move_speed=self.unit_speed,
        )
        center_on(unit, *self.grid.grid_to_world(tile_x, tile_y))

        self._units[unit.id] = unit
        self._index_add(unit)
        logger.info("Created %s (%s) at %s", unit.id, unit.name, unit.tile)
        return unit

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self._units.get(unit_id)

    def _require(self, unit_id: str) -> Unit:
        unit = self._units.get(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    def all_units(self) -> Dict[str, Unit]:
        """Shallow copy of the id → unit mapping."""
        return dict(self._units)

    def units_at_tile(self, tile_x: int, tile_y: int) -> List[Unit]:
        ids = self._by_tile.get((tile_x, tile_y), ())
        return [self._units[unit_id] for unit_id in sorted(ids)]

    def is_position_occupied(self, tile_x: int, tile_y: int) -> bool:
        return bool(self._by_tile.get((tile_x, tile_y)))

    def move_unit(self, unit_id: str, tile_x: int, tile_y: int) -> bool:
        """Send a unit toward a tile.

        A new request replaces any path in progress. Returns ``False`` when the
        unit already stands on the tile (it stops there) or no path exists,
        ``True`` once movement has started.
        """

        unit = self._require(unit_id)
        if not unit.is_alive:
            raise UnitStateError(f"cannot move dead unit: {unit_id}")

        started = self.movement.move_to_tile(unit, tile_x, tile_y)
        unit.status = "moving" if started else "idle"
        return started

    def kill_unit(self, unit_id: str) -> Unit:
        """Mark a unit dead, stop it and free its tile."""

        unit = self._require(unit_id)
        if not unit.is_alive:
            raise UnitStateError(f"unit is already dead: {unit_id}")
        unit.stop()
        unit.is_alive = False
        unit.status = "dead"
        self._index_remove(unit, unit.tile)
        logger.info("Unit %s died at %s", unit_id, unit.tile)
        return unit

    def update(self) -> None:
        """Advance every living unit by one tick and refresh the index."""

        for unit in self._units.values():
            if not unit.is_alive:
                continue
            old_tile = unit.tile
            self.movement.update(unit)
            unit.tile_x, unit.tile_y = self.movement.current_tile(unit)
            unit.status = "moving" if unit.is_moving else "idle"
            if unit.tile != old_tile:
                self._index_remove(unit, old_tile)
                self._index_add(unit)

    def remove_unit(self, unit_id: str) -> Unit:
        unit = self._require(unit_id)
        self._index_remove(unit, unit.tile)
        del self._units[unit_id]
        logger.info("Removed %s", unit_id)
        return unit

    def unit_type_counts(self) -> Dict[UnitType, int]:
        """Number of living units per type."""
        return dict(Counter(unit.unit_type for unit in self._units.values() if unit.is_alive))

    def total_unit_count(self) -> int:
        return sum(1 for unit in self._units.values() if unit.is_alive)

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._units


__all__ = [
    "UnitError",
    "UnitManager",
    "UnitNotFoundError",
    "UnitPlacementError",
    "UnitStateError",
    "UnknownUnitTypeError",
]
