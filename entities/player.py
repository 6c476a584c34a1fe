"""Player-controlled entity."""
from __future__ import annotations

from dataclasses import dataclass, field

from entities.facing import Facing
from entities.movable import MovableEntity, center_on

PLAYER_SIZE = 20.0
PLAYER_MOVE_SPEED = 3.0


@dataclass
class Player(MovableEntity):
    """The player's avatar; moved by clicks translated to tiles by the input layer."""

    width: float = PLAYER_SIZE
    height: float = PLAYER_SIZE
    move_speed: float = PLAYER_MOVE_SPEED
    facing: Facing = field(default_factory=Facing)

    @classmethod
    def at_tile(cls, grid, tile_x: int, tile_y: int, **kwargs) -> "Player":
        """Create a player centred on ``(tile_x, tile_y)``."""

        player = cls(**kwargs)
        center_on(player, *grid.grid_to_world(tile_x, tile_y))
        return player
