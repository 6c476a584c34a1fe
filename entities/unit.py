"""AI-controlled units and the catalog of unit types."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Tuple

from entities.facing import Facing
from entities.movable import MovableEntity

UNIT_SIZE = 16.0
UNIT_MOVE_SPEED = 2.0


class UnitType(IntEnum):
    WARRIOR = 0
    ARCHER = 1
    MAGE = 2
    SCOUT = 3


@dataclass(frozen=True)
class UnitTypeDef:
    """Static description of a unit type."""

    name: str
    icon: str
    color: str
    description: str


UNIT_TYPE_DEFINITIONS: Dict[UnitType, UnitTypeDef] = {
    UnitType.WARRIOR: UnitTypeDef(
        name="Warrior",
        icon="⚔️",
        color="#8B4513",
        description="A heavy armored fighter with high health and defense",
    ),
    UnitType.ARCHER: UnitTypeDef(
        name="Archer",
        icon="🏹",
        color="#228B22",
        description="A ranged fighter with high damage and speed",
    ),
    UnitType.MAGE: UnitTypeDef(
        name="Mage",
        icon="🔮",
        color="#4B0082",
        description="A magic user with devastating spells but low defense",
    ),
    UnitType.SCOUT: UnitTypeDef(
        name="Scout",
        icon="👁️",
        color="#DAA520",
        description="A fast reconnaissance unit with high mobility",
    ),
}


@dataclass
class Unit(MovableEntity):
    """A unit instance tracked by :class:`core.unit_manager.UnitManager`."""

    id: str = ""
    unit_type: UnitType = UnitType.WARRIOR
    name: str = ""
    tile_x: int = 0
    tile_y: int = 0
    is_alive: bool = True
    status: str = "idle"
    width: float = UNIT_SIZE
    height: float = UNIT_SIZE
    move_speed: float = UNIT_MOVE_SPEED
    facing: Facing = field(default_factory=Facing)

    @property
    def type_def(self) -> UnitTypeDef:
        return UNIT_TYPE_DEFINITIONS[self.unit_type]

    @property
    def tile(self) -> Tuple[int, int]:
        return self.tile_x, self.tile_y
