"""Layered tile grid and its supporting data structures."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

from core.events.topics import MapTopic
from modules.maps.terrain_types import DEFAULT_TILE, IMPASSABLE_TILE


TileRows = List[List[int]]
GridCoord = Tuple[int, int]


def _blank_tiles(width: int, height: int, fill: int = DEFAULT_TILE) -> TileRows:
    return [[fill for _ in range(width)] for _ in range(height)]


def _layer_array(layer: "MapLayer", width: int, height: int) -> np.ndarray:
    rows = layer.tiles
    if len(rows) == height and all(len(row) == width for row in rows):
        return np.array(rows, dtype=np.int16)
    data = np.full((height, width), int(DEFAULT_TILE), dtype=np.int16)
    for y, row in enumerate(rows[:height]):
        values = [int(v) for v in row[:width]]
        data[y, : len(values)] = values
    return data


@dataclass(slots=True)
class MapLayer:
    """One full-grid array of tile types plus its draw order and visibility."""

    title: str
    draw_order: int = 0
    visible: bool = True
    tiles: TileRows = field(default_factory=list)

    def tile_at(self, x: int, y: int) -> int:
        """Return the raw tile value, treating missing cells as the default tile."""

        try:
            row = self.tiles[y]
            return row[x]
        except IndexError:
            return DEFAULT_TILE


class TileGrid:
    """Rectangular map made of stacked tile layers.

    The effective tile of a cell is resolved by walking the visible layers from
    the highest draw order down and returning the first non-default value.
    Layers are never merged, so hiding or removing one restores whatever lies
    underneath.

    Example usage:
    ```python
    grid = TileGrid(10, 10, tile_size=32)
    grid.set_tile(3, 3, TileType.WATER)
    roads = grid.add_layer("Roads", draw_order=1)
    grid.set_tile_on_layer(roads, 4, 3, TileType.DIRT_PATH)
    grid.get_tile(4, 3)  # TileType.DIRT_PATH
    ```
    """

    BASE_LAYER_TITLE = "Base Terrain"

    def __init__(
        self,
        width: int,
        height: int,
        tile_size: float = 32.0,
        *,
        base_tiles: Optional[TileRows] = None,
        event_bus: Optional[Any] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be positive")
        if tile_size <= 0:
            raise ValueError("tile_size must be positive")

        self.width = width
        self.height = height
        self.tile_size = float(tile_size)
        self.event_bus = event_bus

        if base_tiles is not None:
            tiles = [list(row) for row in base_tiles]
        else:
            tiles = _blank_tiles(width, height)
        self.layers: List[MapLayer] = [
            MapLayer(title=self.BASE_LAYER_TITLE, draw_order=0, visible=True, tiles=tiles)
        ]
        self._visible_cache: Optional[List[MapLayer]] = None

    def _layers_changed(self) -> None:
        self._visible_cache = None

    def _publish(self, topic: MapTopic, **payload: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(topic, **payload)

    # ------------------------------------------------------------------
    # Bounds & coordinates
    # ------------------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        """Return ``True`` when ``(x, y)`` lies within the grid bounds."""

        return 0 <= x < self.width and 0 <= y < self.height

    @property
    def center(self) -> GridCoord:
        return self.width // 2, self.height // 2

    @property
    def world_size(self) -> Tuple[float, float]:
        """Map extent in world units."""

        return self.width * self.tile_size, self.height * self.tile_size

    def world_to_grid(self, px: float, py: float) -> GridCoord:
        """Return the cell containing the world point ``(px, py)``."""

        return int(math.floor(px / self.tile_size)), int(math.floor(py / self.tile_size))

    def grid_to_world(self, x: int, y: int) -> Tuple[float, float]:
        """Return the world coordinates of the centre of cell ``(x, y)``."""

        half = self.tile_size / 2
        return x * self.tile_size + half, y * self.tile_size + half

    # ------------------------------------------------------------------
    # Tile queries
    # ------------------------------------------------------------------
    def _visible_layers(self) -> List[MapLayer]:
        # Cached until a layer is added, removed, hidden, shown or re-ordered
        if self._visible_cache is None:
            visible = [layer for layer in self.layers if layer.visible]
            self._visible_cache = sorted(visible, key=lambda layer: layer.draw_order)
        return self._visible_cache

    def visible_layers_sorted(self) -> List[MapLayer]:
        """Visible layers, bottom to top (ascending draw order, stable)."""

        return list(self._visible_layers())

    def get_tile(self, x: int, y: int) -> int:
        """Return the effective tile type at ``(x, y)``."""

        if not self.in_bounds(x, y):
            return IMPASSABLE_TILE

        for layer in reversed(self._visible_layers()):
            tile = layer.tile_at(x, y)
            if tile != DEFAULT_TILE:
                return tile
        return DEFAULT_TILE

    def get_tile_from_layer(self, index: int, x: int, y: int) -> int:
        """Return the raw tile stored on one layer."""

        if not 0 <= index < len(self.layers) or not self.in_bounds(x, y):
            return IMPASSABLE_TILE
        return self.layers[index].tile_at(x, y)

    def set_tile(self, x: int, y: int, tile: int) -> bool:
        """Write ``tile`` on the base layer (index 0)."""

        return self.set_tile_on_layer(0, x, y, tile)

    def set_tile_on_layer(self, index: int, x: int, y: int, tile: int) -> bool:
        if not 0 <= index < len(self.layers) or not self.in_bounds(x, y):
            return False
        rows = self.layers[index].tiles
        if y >= len(rows) or x >= len(rows[y]):
            return False
        rows[y][x] = tile
        return True

    def fill_rect(self, x: int, y: int, width: int, height: int, tile: int, *, layer: int = 0) -> int:
        """Paint a rectangle on ``layer``, clipped to the grid. Returns cells written."""

        written = 0
        for cy in range(max(0, y), min(self.height, y + height)):
            for cx in range(max(0, x), min(self.width, x + width)):
                if self.set_tile_on_layer(layer, cx, cy, tile):
                    written += 1
        return written

    def composite(self) -> np.ndarray:
        """Snapshot of effective tiles as a ``(height, width)`` array."""

        result = np.full((self.height, self.width), int(DEFAULT_TILE), dtype=np.int16)
        for layer in self._visible_layers():
            data = _layer_array(layer, self.width, self.height)
            mask = data != int(DEFAULT_TILE)
            result[mask] = data[mask]
        return result

    # ------------------------------------------------------------------
    # Layer management
    # ------------------------------------------------------------------
    def add_layer(self, title: str, draw_order: int = 0, visible: bool = True) -> int:
        """Append an all-default layer and return its index."""

        layer = MapLayer(
            title=title,
            draw_order=draw_order,
            visible=visible,
            tiles=_blank_tiles(self.width, self.height),
        )
        self.layers.append(layer)
        self._layers_changed()
        index = len(self.layers) - 1
        self._publish(MapTopic.LAYER_ADDED, index=index, title=title, draw_order=draw_order)
        return index

    def remove_layer(self, index: int) -> bool:
        """Remove a layer; the sole remaining layer can never be removed."""

        if not 0 <= index < len(self.layers) or len(self.layers) <= 1:
            return False
        removed = self.layers.pop(index)
        self._layers_changed()
        self._publish(MapTopic.LAYER_REMOVED, index=index, title=removed.title)
        return True

    def set_layer_visibility(self, index: int, visible: bool) -> bool:
        if not 0 <= index < len(self.layers):
            return False
        self.layers[index].visible = visible
        self._layers_changed()
        self._publish(MapTopic.LAYER_VISIBILITY_CHANGED, index=index, visible=visible)
        return True

    def set_layer_draw_order(self, index: int, draw_order: int) -> bool:
        if not 0 <= index < len(self.layers):
            return False
        self.layers[index].draw_order = draw_order
        self._layers_changed()
        self._publish(MapTopic.LAYER_DRAW_ORDER_CHANGED, index=index, draw_order=draw_order)
        return True

    def find_layer(self, title: str) -> Optional[int]:
        """Index of the first layer titled ``title``, if any."""

        for index, layer in enumerate(self.layers):
            if layer.title == title:
                return index
        return None


__all__ = ["GridCoord", "MapLayer", "TileGrid", "TileRows"]
