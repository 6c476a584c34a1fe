"""Tick-driven movement of entities along A* paths on a :class:`TileGrid`."""
from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Tuple

from core.events.topics import MovementTopic
from core.pathfinding import GridCoord, Pathfinder
from entities.movable import Movable
from modules.maps.components import TileGrid
from modules.maps.terrain_types import TerrainTable
from utils.logger import get_logger, log_calls

logger = get_logger(__name__)

ARRIVAL_THRESHOLD = 0.5
"""Distance under which an entity snaps onto its current step target."""


def has_reached_target(
    position: Tuple[float, float],
    target: Tuple[float, float],
    threshold: float = ARRIVAL_THRESHOLD,
) -> bool:
    """Return ``True`` when ``position`` is within ``threshold`` of ``target``."""

    return math.hypot(target[0] - position[0], target[1] - position[1]) <= threshold


def step_towards(
    position: Tuple[float, float],
    target: Tuple[float, float],
    speed: float,
) -> Tuple[float, float]:
    """Move ``speed`` units from ``position`` toward ``target`` without overshooting."""

    dx = target[0] - position[0]
    dy = target[1] - position[1]
    distance = math.hypot(dx, dy)
    if distance <= speed:
        return target
    return position[0] + dx / distance * speed, position[1] + dy / distance * speed


def clamp_to_bounds(
    position: Tuple[float, float],
    size: Tuple[float, float],
    bounds: Tuple[float, float],
) -> Tuple[float, float]:
    """Clamp a top-left ``position`` so a box of ``size`` stays inside ``bounds``."""

    max_x = max(0.0, bounds[0] - size[0])
    max_y = max(0.0, bounds[1] - size[1])
    return min(max(position[0], 0.0), max_x), min(max(position[1], 0.0), max_y)


class MovementSystem:
    """Drives :class:`~entities.movable.Movable` entities along grid paths.

    Each entity is either idle (``is_moving`` false) or following a path.
    :meth:`move_to_tile` installs a path, :meth:`update` advances one tick.
    A single arrival threshold decides when an entity snaps onto its current
    target, and a step that would overshoot the target snaps instead, so an
    entity never stalls short of a target nor oscillates around it.
    """

    def __init__(
        self,
        grid: TileGrid,
        terrain: Optional[TerrainTable] = None,
        *,
        pathfinder: Optional[Pathfinder] = None,
        event_bus: Optional[Any] = None,
        arrival_threshold: float = ARRIVAL_THRESHOLD,
    ) -> None:
        if arrival_threshold < 0:
            raise ValueError("arrival_threshold must be non-negative")
        self.grid = grid
        self.terrain = terrain or (pathfinder.terrain if pathfinder else TerrainTable())
        self.pathfinder = pathfinder or Pathfinder(grid, self.terrain)
        self.event_bus = event_bus
        self.arrival_threshold = arrival_threshold

    @classmethod
    def from_config(cls, grid: TileGrid, config: Any, *, event_bus: Optional[Any] = None) -> "MovementSystem":
        """Build the system, its terrain table and pathfinder from settings."""

        terrain = TerrainTable.from_config(config)
        return cls(
            grid,
            terrain,
            pathfinder=Pathfinder.from_config(grid, config, terrain),
            event_bus=event_bus,
            arrival_threshold=float(config.get("movement", "arrival_threshold", default=ARRIVAL_THRESHOLD)),
        )

    # --- Event helpers ----------------------------------------------------------
    def _publish(self, topic: MovementTopic, **payload: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(topic, **payload)

    # --- Grid helpers -----------------------------------------------------------
    def current_tile(self, entity: Movable) -> GridCoord:
        """Cell under the centre of the entity's bounding box."""

        return self.grid.world_to_grid(entity.x + entity.width / 2, entity.y + entity.height / 2)

    def _target_for_cell(self, entity: Movable, cell: GridCoord) -> Tuple[float, float]:
        world_x, world_y = self.grid.grid_to_world(*cell)
        return world_x - entity.width / 2, world_y - entity.height / 2

    def terrain_speed(self, entity: Movable) -> float:
        """Base speed scaled by the terrain under the entity.

        A zero multiplier (the tile became impassable under the entity) falls
        back to the default tile so the entity can still walk off it.
        """

        tile = self.grid.get_tile(*self.current_tile(entity))
        multiplier = self.terrain.lookup(tile).speed_multiplier
        if multiplier <= 0:
            multiplier = self.terrain.lookup(self.terrain.default_tile).speed_multiplier
        return entity.move_speed * multiplier

    @staticmethod
    def _go_idle(entity: Movable) -> None:
        entity.is_moving = False
        entity.path = None
        entity.path_step = 0

    # --- Public API -------------------------------------------------------------
    @log_calls
    def move_to_tile(self, entity: Movable, tile_x: int, tile_y: int) -> bool:
        """Start moving ``entity`` toward ``(tile_x, tile_y)``.

        Returns ``True`` when a path was installed.  Already standing on the
        tile, or no reachable path, leaves the entity idle and returns
        ``False``; neither case is an error.
        """

        start = self.current_tile(entity)
        destination = (tile_x, tile_y)
        if start == destination:
            self._go_idle(entity)
            return False

        path = self.pathfinder.find_path(start, destination)
        if not path:
            logger.debug("No path from %s to %s; entity stays idle", start, destination)
            self._go_idle(entity)
            self._publish(MovementTopic.PATH_NOT_FOUND, entity=entity, from_tile=start, to_tile=destination)
            return False

        entity.path = path
        entity.path_step = 0
        entity.is_moving = True
        entity.target_x, entity.target_y = self._target_for_cell(entity, path[0])
        self._publish(
            MovementTopic.MOVEMENT_STARTED,
            entity=entity,
            from_tile=start,
            to_tile=path[-1],
            path_length=len(path),
        )
        return True

    def update(self, entity: Movable) -> None:
        """Advance ``entity`` by one tick."""

        if not entity.is_moving:
            return
        if entity.path is None:
            self._go_idle(entity)
            return

        position = (entity.x, entity.y)
        target = (entity.target_x, entity.target_y)
        distance = math.hypot(target[0] - position[0], target[1] - position[1])

        if distance <= self.arrival_threshold:
            self._arrive(entity, position)
            return

        speed = self.terrain_speed(entity)
        if distance <= speed:
            self._arrive(entity, position)
            return

        entity.x, entity.y = step_towards(position, target, speed)
        self._turn(entity, position, target)
        self.clamp_to_map_bounds(entity)

    def update_all(self, entities: Iterable[Movable]) -> None:
        for entity in entities:
            self.update(entity)

    def clamp_to_map_bounds(self, entity: Movable) -> None:
        """Keep the entity's bounding box (and its target) inside the map."""

        bounds = self.grid.world_size
        size = (entity.width, entity.height)
        entity.x, entity.y = clamp_to_bounds((entity.x, entity.y), size, bounds)
        entity.target_x, entity.target_y = clamp_to_bounds((entity.target_x, entity.target_y), size, bounds)

    # --- State machine internals ------------------------------------------------
    def _arrive(self, entity: Movable, previous: Tuple[float, float]) -> None:
        """Snap onto the current target and move on to the next path step."""

        entity.x, entity.y = entity.target_x, entity.target_y
        self._turn(entity, previous, (entity.x, entity.y))
        self.clamp_to_map_bounds(entity)
        self._advance_path_step(entity)

    def _advance_path_step(self, entity: Movable) -> None:
        path = entity.path
        reached = path[entity.path_step] if 0 <= entity.path_step < len(path) else None
        entity.path_step += 1

        if entity.path_step < len(path):
            entity.target_x, entity.target_y = self._target_for_cell(entity, path[entity.path_step])
            self._publish(MovementTopic.STEP_REACHED, entity=entity, tile=reached, path_step=entity.path_step - 1)
            return

        final_tile = path[-1] if path else None
        self._go_idle(entity)
        self._publish(MovementTopic.MOVEMENT_ENDED, entity=entity, tile=final_tile)

    @staticmethod
    def _turn(entity: Movable, origin: Tuple[float, float], destination: Tuple[float, float]) -> None:
        facing = getattr(entity, "facing", None)
        if facing is None or facing.is_fixed():
            return
        facing.face_towards_position(origin, destination)


__all__ = [
    "ARRIVAL_THRESHOLD",
    "MovementSystem",
    "clamp_to_bounds",
    "has_reached_target",
    "step_towards",
]
