"""The contract every movable entity fulfils, plus a reusable base class."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple, runtime_checkable

GridCoord = Tuple[int, int]


@runtime_checkable
class Movable(Protocol):
    """Attributes :class:`~modules.movement.system.MovementSystem` reads and writes.

    ``x``/``y`` is the top-left corner of the bounding box in world units and
    ``target_x``/``target_y`` the top-left position the entity is heading to.
    While ``is_moving`` is true, ``path`` holds the cells being followed and
    ``path_step`` indexes the current one.
    """

    x: float
    y: float
    width: float
    height: float
    move_speed: float
    target_x: float
    target_y: float
    is_moving: bool
    path: Optional[List[GridCoord]]
    path_step: int


@dataclass
class MovableEntity:
    """Plain implementation of :class:`Movable` shared by players and units."""

    x: float = 0.0
    y: float = 0.0
    width: float = 20.0
    height: float = 20.0
    move_speed: float = 3.0
    target_x: float = 0.0
    target_y: float = 0.0
    is_moving: bool = False
    path: Optional[List[GridCoord]] = None
    path_step: int = 0

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    @position.setter
    def position(self, value: Tuple[float, float]) -> None:
        self.x, self.y = value

    @property
    def size(self) -> Tuple[float, float]:
        return self.width, self.height

    @property
    def target(self) -> Tuple[float, float]:
        return self.target_x, self.target_y

    @target.setter
    def target(self, value: Tuple[float, float]) -> None:
        self.target_x, self.target_y = value

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def stop(self) -> None:
        """Drop the current path and become idle."""
        self.is_moving = False
        self.path = None
        self.path_step = 0


def center_on(entity: Movable, world_x: float, world_y: float) -> None:
    """Place ``entity`` so its bounding-box centre sits on ``(world_x, world_y)``."""
    entity.x = world_x - entity.width / 2
    entity.y = world_y - entity.height / 2
    entity.target_x = entity.x
    entity.target_y = entity.y


__all__ = ["GridCoord", "Movable", "MovableEntity", "center_on"]
