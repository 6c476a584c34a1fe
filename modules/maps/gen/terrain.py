"""Procedural terrain painter: lakes, rivers, ponds and dirt paths.

Water features are rasterised with ``numpy`` masks over the whole layer and
written back in one pass; dirt paths are traced afterwards and only ever
replace grass, so every water cell painted earlier survives.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from modules.maps.components import TileGrid
from modules.maps.gen.params import LakeSpec, PathSpec, PondSpec, RiverSpec, TerrainGenParams
from modules.maps.gen.random import get_rng, rand_phase
from modules.maps.terrain_types import TileType
from utils.logger import get_logger, log_calls

logger = get_logger(__name__)

GRASS = int(TileType.GRASS)
WATER = int(TileType.WATER)
DIRT = int(TileType.DIRT_PATH)


@dataclass(slots=True)
class TerrainStats:
    """Tile counts of a freshly generated layer."""

    grass: int
    water: int
    dirt_path: int

    @property
    def total(self) -> int:
        return self.grass + self.water + self.dirt_path


def _lake_center(lake: LakeSpec, width: int, height: int) -> tuple[int, int]:
    return int(round(lake.center_x * (width - 1))), int(round(lake.center_y * (height - 1)))


def lake_mask(lake: LakeSpec, width: int, height: int, phase: float = 0.0) -> np.ndarray:
    """Boolean ``(height, width)`` mask of the cells covered by ``lake``.

    The shoreline is an ellipse whose radii are perturbed by two sine waves of
    the polar angle around the centre.
    """

    cx, cy = _lake_center(lake, width, height)
    rx = max(1.0, lake.radius_x * width)
    ry = max(1.0, lake.radius_y * height)

    ys, xs = np.ogrid[0:height, 0:width]
    dx = (xs - cx).astype(float)
    dy = (ys - cy).astype(float)
    angle = np.arctan2(dy, dx)
    noise = np.sin(angle * 6 + phase) * lake.irregularity
    noise += np.sin(angle * 4 + 2.5 + phase) * lake.irregularity * 0.5

    dist_x = dx / (rx + noise)
    dist_y = dy / (ry + noise * 0.7)
    return np.sqrt(dist_x**2 + dist_y**2) < 1.0


def _disc(tiles: np.ndarray, x: int, y: int, radius: int, value: int) -> None:
    height, width = tiles.shape
    y0, y1 = max(0, y - radius), min(height, y + radius + 1)
    x0, x1 = max(0, x - radius), min(width, x + radius + 1)
    if y0 >= y1 or x0 >= x1:
        return
    ys, xs = np.ogrid[y0:y1, x0:x1]
    inside = (xs - x) ** 2 + (ys - y) ** 2 <= radius * radius
    tiles[y0:y1, x0:x1][inside] = value


def paint_river(tiles: np.ndarray, start: tuple[int, int], end: tuple[int, int], river: RiverSpec) -> None:
    """Trace a meandering band of water from ``start`` to ``end``."""

    height, width = tiles.shape
    steps = int(math.hypot(end[0] - start[0], end[1] - start[1]))
    if steps == 0:
        return
    amplitude = river.meander * width
    for step in range(steps + 1):
        t = step / steps
        curve = math.sin(t * math.pi * 2) * amplitude
        x = int(start[0] * (1 - t) + end[0] * t + curve)
        y = int(start[1] * (1 - t) + end[1] * t)
        _disc(tiles, x, y, river.width, WATER)


def paint_pond(tiles: np.ndarray, pond: PondSpec) -> None:
    height, width = tiles.shape
    px = int(round(pond.center_x * (width - 1)))
    py = int(round(pond.center_y * (height - 1)))
    r = pond.radius
    y0, y1 = max(0, py - r), min(height, py + r + 1)
    x0, x1 = max(0, px - r), min(width, px + r + 1)
    if y0 >= y1 or x0 >= x1:
        return
    ys, xs = np.ogrid[y0:y1, x0:x1]
    dist2 = (xs - px) ** 2 + (ys - py) ** 2
    # Rim cells are kept on a diagonal pattern for a ragged edge
    inside = (dist2 <= (r - 1) ** 2) | ((dist2 <= r * r) & ((xs + ys) % 3 == 0))
    tiles[y0:y1, x0:x1][inside] = WATER


def paint_path(tiles: np.ndarray, path: PathSpec) -> int:
    """Trace a snaking dirt path; returns the number of grass cells converted."""

    height, width = tiles.shape
    sx, sy = path.start[0] * (width - 1), path.start[1] * (height - 1)
    ex, ey = path.end[0] * (width - 1), path.end[1] * (height - 1)
    total = math.hypot(ex - sx, ey - sy)
    if total == 0:
        return 0

    amplitude = path.amplitude * max(width, height)
    perp_x, perp_y = -(ey - sy) / total, (ex - sx) / total
    steps = int(total)
    converted = 0
    for step in range(steps + 1):
        t = step / steps if steps else 0.0
        offset = math.sin(t * math.pi * 3) * amplitude + math.sin(t * math.pi * 7) * amplitude * 0.3
        tx = int(round(sx + (ex - sx) * t + perp_x * offset))
        ty = int(round(sy + (ey - sy) * t + perp_y * offset))
        # Centre plus 4-neighbours keeps the trail connected through bends
        for dx, dy in ((0, 0), (1, 0), (-1, 0), (0, 1), (0, -1)):
            x, y = tx + dx, ty + dy
            if 0 <= x < width and 0 <= y < height and tiles[y, x] == GRASS:
                tiles[y, x] = DIRT
                converted += 1
    return converted


def count_tiles(tiles: np.ndarray) -> TerrainStats:
    return TerrainStats(
        grass=int(np.count_nonzero(tiles == GRASS)),
        water=int(np.count_nonzero(tiles == WATER)),
        dirt_path=int(np.count_nonzero(tiles == DIRT)),
    )


@log_calls
def generate_terrain(grid: TileGrid, params: TerrainGenParams | None = None) -> TerrainStats:
    """Overwrite ``params.layer`` of ``grid`` with a generated landscape.

    The layer is reset to grass, then lakes, rivers between lake centres and
    ponds are carved, and finally dirt paths are traced over the remaining
    grass.  The same ``params`` (seed included) always yields the same tiles.
    """

    params = params or TerrainGenParams()
    if params.layer >= len(grid.layers):
        raise IndexError(f"layer {params.layer} does not exist")

    rng = get_rng(params.seed)
    width, height = grid.width, grid.height
    tiles = np.full((height, width), GRASS, dtype=np.int16)

    for lake in params.lakes:
        tiles[lake_mask(lake, width, height, rand_phase(rng, params.shore_jitter))] = WATER

    for river in params.rivers:
        start = _lake_center(params.lakes[river.source], width, height)
        end = _lake_center(params.lakes[river.mouth], width, height)
        paint_river(tiles, start, end, river)

    for pond in params.ponds:
        paint_pond(tiles, pond)

    for path in params.paths:
        paint_path(tiles, path)

    grid.layers[params.layer].tiles = [[TileType(v) for v in row] for row in tiles.tolist()]
    stats = count_tiles(tiles)
    logger.info(
        "Generated %dx%d terrain on layer %d: grass=%d water=%d dirt=%d",
        width, height, params.layer, stats.grass, stats.water, stats.dirt_path,
    )
    return stats


__all__ = [
    "TerrainStats",
    "count_tiles",
    "generate_terrain",
    "lake_mask",
    "paint_path",
    "paint_pond",
    "paint_river",
]
