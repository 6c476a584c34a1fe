"""A* pathfinding over a layered tile grid with terrain-dependent costs."""
import heapq
import itertools
import math
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from modules.maps.components import TileGrid
from modules.maps.terrain_types import TerrainTable
from utils.logger import get_logger, log_calls

GridCoord = Tuple[int, int]
Path = List[GridCoord]

logger = get_logger(__name__)

SQRT2 = math.sqrt(2.0)

# Cardinal directions first, then diagonals
DIRECTIONS: Tuple[GridCoord, ...] = (
    (0, 1), (1, 0), (0, -1), (-1, 0),
    (1, 1), (-1, -1), (1, -1), (-1, 1),
)

DEFAULT_MAX_SEARCH_RADIUS = 20
DEFAULT_EXPANSION_FACTOR = 4


def heuristic(a: GridCoord, b: GridCoord) -> float:
    """Euclidean distance between two cells."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def is_adjacent(a: GridCoord, b: GridCoord) -> bool:
    """True when ``a`` and ``b`` are distinct and Chebyshev-adjacent."""
    return a != b and max(abs(a[0] - b[0]), abs(a[1] - b[1])) == 1


class Pathfinder:
    """A* search on the 8-connected grid of a :class:`TileGrid`.

    Moving into a neighbour costs ``1 / speed`` orthogonally and ``√2 / speed``
    diagonally, where ``speed`` is the neighbour's terrain multiplier; tiles
    with a zero multiplier are never entered.  Open-set ties are broken by
    insertion order so identical requests always yield identical paths.

    Args:
        grid: Tile grid to search.
        terrain: Terrain table used for walkability and costs.
        max_search_radius: Radius bound of the nearest-walkable search.
        expansion_factor: Expansions allowed per grid cell before giving up.

    Example:
        ```python
        pathfinder = Pathfinder(grid, TerrainTable())
        path = pathfinder.find_path((0, 5), (9, 5))
        if path is None:
            print("unreachable")
        ```
    """

    def __init__(
        self,
        grid: TileGrid,
        terrain: Optional[TerrainTable] = None,
        *,
        max_search_radius: int = DEFAULT_MAX_SEARCH_RADIUS,
        expansion_factor: int = DEFAULT_EXPANSION_FACTOR,
    ) -> None:
        if max_search_radius < 0:
            raise ValueError("max_search_radius must be non-negative")
        if expansion_factor <= 0:
            raise ValueError("expansion_factor must be positive")
        self.grid = grid
        self.terrain = terrain or TerrainTable()
        self.max_search_radius = max_search_radius
        self.expansion_factor = expansion_factor

    @classmethod
    def from_config(cls, grid: TileGrid, config: Any, terrain: Optional[TerrainTable] = None) -> "Pathfinder":
        return cls(
            grid,
            terrain or TerrainTable.from_config(config),
            max_search_radius=int(config.get("pathfinding", "max_search_radius", default=DEFAULT_MAX_SEARCH_RADIUS)),
            expansion_factor=int(config.get("pathfinding", "expansion_factor", default=DEFAULT_EXPANSION_FACTOR)),
        )

    @property
    def max_expansions(self) -> int:
        return self.expansion_factor * self.grid.width * self.grid.height

    # ------------------------------------------------------------------
    # Terrain helpers
    # ------------------------------------------------------------------
    def is_walkable(self, x: int, y: int) -> bool:
        if not self.grid.in_bounds(x, y):
            return False
        return self.terrain.lookup(self.grid.get_tile(x, y)).walkable

    def speed_at(self, x: int, y: int) -> float:
        if not self.grid.in_bounds(x, y):
            return 0.0
        return self.terrain.lookup(self.grid.get_tile(x, y)).speed_multiplier

    def speed_grid(self) -> List[List[float]]:
        """Per-cell speed rows (``[y][x]``) with unwalkable cells set to ``0.0``.

        Built from one :meth:`TileGrid.composite` snapshot so a search reads the
        terrain once instead of resolving layers for every neighbour.
        """
        tiles = self.grid.composite()
        speeds = np.zeros(tiles.shape, dtype=float)
        for tile in np.unique(tiles):
            descriptor = self.terrain.lookup(int(tile))
            if descriptor.walkable:
                speeds[tiles == tile] = descriptor.speed_multiplier
        return speeds.tolist()

    def step_cost(self, dx: int, dy: int, speed: float) -> float:
        base = SQRT2 if dx != 0 and dy != 0 else 1.0
        return base / speed

    # ------------------------------------------------------------------
    # Nearest walkable tile
    # ------------------------------------------------------------------
    def find_nearest_walkable(self, x: int, y: int) -> GridCoord:
        """Return the walkable cell closest to ``(x, y)``.

        The search grows a square of radius ``r`` around the target and only
        accepts cells whose Euclidean distance falls in ``(r - 1, r]``, so a
        corner of the square never beats a closer cell reached at a larger
        radius.  Inside a band the closest cell wins, ties going to scan order.
        When nothing walkable lies within ``max_search_radius`` the grid centre
        is returned.
        """
        if self.is_walkable(x, y):
            return x, y

        for radius in range(1, self.max_search_radius + 1):
            best: Optional[GridCoord] = None
            best_distance = math.inf
            for dx in range(-radius, radius + 1):
                for dy in range(-radius, radius + 1):
                    distance = math.hypot(dx, dy)
                    if distance > radius or distance <= radius - 1:
                        continue
                    cx, cy = x + dx, y + dy
                    if distance < best_distance and self.is_walkable(cx, cy):
                        best = (cx, cy)
                        best_distance = distance
            if best is not None:
                return best

        logger.debug("No walkable tile within %d of (%d, %d); using grid centre", self.max_search_radius, x, y)
        return self.grid.center

    # ------------------------------------------------------------------
    # A*
    # ------------------------------------------------------------------
    @log_calls
    def find_path(self, start: GridCoord, goal: GridCoord) -> Optional[Path]:
        """Return the cheapest path from ``start`` to ``goal`` or ``None``.

        Unwalkable or out-of-bounds endpoints are first moved to their nearest
        walkable tile; the returned path starts and ends on those adjusted
        cells.
        """
        start = self.find_nearest_walkable(*start)
        goal = self.find_nearest_walkable(*goal)
        if not self.is_walkable(*start) or not self.is_walkable(*goal):
            logger.debug("Pathfinding endpoints %s -> %s have no walkable fallback", start, goal)
            return None

        if start == goal:
            return [start]

        counter = itertools.count()
        open_heap: List[Tuple[float, int, GridCoord]] = []
        heapq.heappush(open_heap, (heuristic(start, goal), next(counter), start))

        came_from: Dict[GridCoord, GridCoord] = {}
        g_score: Dict[GridCoord, float] = {start: 0.0}
        closed: set = set()
        limit = self.max_expansions
        speeds = self.speed_grid()
        width, height = self.grid.width, self.grid.height

        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue  # Stale heap entry
            if current == goal:
                return self._reconstruct(came_from, current)

            closed.add(current)
            if len(closed) > limit:
                logger.warning(
                    "A* expansion limit %d exceeded between %s and %s", limit, start, goal
                )
                return None

            cx, cy = current
            current_g = g_score[current]
            for dx, dy in DIRECTIONS:
                nx, ny = cx + dx, cy + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                neighbor = (nx, ny)
                if neighbor in closed:
                    continue
                speed = speeds[ny][nx]
                if speed <= 0:
                    continue

                tentative_g = current_g + self.step_cost(dx, dy, speed)
                if tentative_g < g_score.get(neighbor, math.inf):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g
                    f_score = tentative_g + heuristic(neighbor, goal)
                    heapq.heappush(open_heap, (f_score, next(counter), neighbor))

        logger.debug("No path between %s and %s", start, goal)
        return None

    @staticmethod
    def _reconstruct(came_from: Dict[GridCoord, GridCoord], current: GridCoord) -> Path:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path


def path_cost(path: Path, pathfinder: Pathfinder) -> float:
    """Total traversal cost of ``path`` under ``pathfinder``'s terrain."""
    total = 0.0
    for (ax, ay), (bx, by) in zip(path, path[1:]):
        total += pathfinder.step_cost(bx - ax, by - ay, pathfinder.speed_at(bx, by))
    return total
