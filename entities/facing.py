"""
Facing - Tracks the direction an entity is facing.

Updated by the movement system from the movement direction and read by the
render layer to orient sprites.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class Facing:
    """
    Direction an entity is facing.

    Attributes:
        direction: Current facing direction as normalized vector (dx, dy), in
            screen space (positive y points down the map)
        last_target_position: Last world position the entity turned towards
        default_direction: Direction used when no movement has happened yet
        mode: "Auto" (default) lets the movement system update the facing.
              "Fixed" prevents automatic updates (manual control only).
    """
    direction: Tuple[float, float] = (0.0, 1.0)  # Facing down the map
    last_target_position: Optional[Tuple[float, float]] = None
    default_direction: Tuple[float, float] = (0.0, 1.0)
    mode: str = "Auto"  # or "Fixed"

    def is_fixed(self) -> bool:
        """Return True if automatic facing updates should be skipped."""
        return self.mode.lower() == "fixed"

    def set_facing_direction(self, dx: float, dy: float) -> None:
        """
        Set the facing direction as a normalized vector.

        Args:
            dx: X component of direction vector
            dy: Y component of direction vector
        """
        length = (dx * dx + dy * dy) ** 0.5
        if length > 0:
            self.direction = (dx / length, dy / length)
        else:
            self.direction = self.default_direction

    def face_towards_position(self, origin: Tuple[float, float], target: Tuple[float, float]) -> None:
        """
        Update facing direction to face towards a target position.

        Args:
            origin: Current position of the entity (x, y)
            target: Position to face towards (x, y)
        """
        dx = target[0] - origin[0]
        dy = target[1] - origin[1]

        # Same position, keep current facing
        if dx == 0 and dy == 0:
            return

        self.last_target_position = target
        self.set_facing_direction(float(dx), float(dy))

    def get_cardinal_direction(self) -> str:
        """
        Get the facing direction as a compass string.

        Returns:
            One of: 'north', 'south', 'east', 'west', 'northeast', 'northwest', 'southeast', 'southwest'
        """
        dx, dy = self.direction

        if abs(dx) > abs(dy):
            if dx > 0:
                return 'east' if abs(dy) < 0.5 else ('southeast' if dy > 0 else 'northeast')
            return 'west' if abs(dy) < 0.5 else ('southwest' if dy > 0 else 'northwest')
        if dy > 0:
            return 'south' if abs(dx) < 0.5 else ('southeast' if dx > 0 else 'southwest')
        return 'north' if abs(dx) < 0.5 else ('northeast' if dx > 0 else 'northwest')

    def get_rotation(self) -> float:
        """Rotation in degrees, clockwise from east, for sprite rendering."""
        angle = math.degrees(math.atan2(self.direction[1], self.direction[0]))
        return angle + 360.0 if angle < 0 else angle
