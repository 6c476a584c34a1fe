"""Tile types and the terrain table describing how entities traverse them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterator, Mapping, Optional


class TileType(IntEnum):
    """Tile values stored in map layers."""

    GRASS = 0
    WATER = 1
    DIRT_PATH = 2


DEFAULT_TILE = TileType.GRASS
"""Tile treated as transparent when compositing layers."""

IMPASSABLE_TILE = TileType.WATER
"""Tile reported for coordinates outside the grid."""


@dataclass(frozen=True)
class TerrainDescriptor:
    """Describes how a tile type affects movement."""

    name: str
    walkable: bool
    speed_multiplier: float
    color: str = "#000000"

    def __post_init__(self) -> None:
        if self.speed_multiplier < 0:
            raise ValueError("speed_multiplier must be non-negative")
        if self.walkable and self.speed_multiplier == 0:
            raise ValueError("walkable terrain needs a positive speed_multiplier")
        if not self.walkable and self.speed_multiplier != 0:
            raise ValueError("impassable terrain must have a speed_multiplier of 0")

    @property
    def movement_cost(self) -> Optional[float]:
        """Cost of entering this tile orthogonally, ``None`` when impassable."""

        if not self.walkable:
            return None
        return 1.0 / self.speed_multiplier


# Catalog of terrain descriptors available by default.
TERRAIN_CATALOG: Dict[TileType, TerrainDescriptor] = {
    TileType.GRASS: TerrainDescriptor(
        name="grass",
        walkable=True,
        speed_multiplier=1.0,
        color="#90EE90",
    ),
    TileType.WATER: TerrainDescriptor(
        name="water",
        walkable=False,
        speed_multiplier=0.0,
        color="#4169E1",
    ),
    TileType.DIRT_PATH: TerrainDescriptor(
        name="dirt_path",
        walkable=True,
        speed_multiplier=1.5,
        color="#8B4513",
    ),
}


def tile_type_from_name(name: str) -> TileType:
    """Resolve ``"dirt_path"``-style names to :class:`TileType` members."""

    try:
        return TileType[name.upper()]
    except KeyError as exc:
        raise KeyError(f"unknown tile type '{name}'") from exc


class TerrainTable:
    """Maps tile types to :class:`TerrainDescriptor` entries.

    Lookups for unregistered tile values fall back to the entry of
    ``default_tile``, so the table never fails on unexpected layer data.
    """

    def __init__(
        self,
        descriptors: Optional[Mapping[int, TerrainDescriptor]] = None,
        default_tile: int = DEFAULT_TILE,
    ) -> None:
        self._descriptors: Dict[int, TerrainDescriptor] = dict(
            TERRAIN_CATALOG if descriptors is None else descriptors
        )
        if default_tile not in self._descriptors:
            raise ValueError(f"default tile {default_tile!r} has no descriptor")
        self.default_tile = default_tile

    @classmethod
    def from_config(cls, config: Any) -> "TerrainTable":
        """Build a table from the ``terrain`` section of the settings file."""

        tiles = config.get("terrain", "tiles")
        descriptors: Dict[int, TerrainDescriptor] = {}
        for name, entry in tiles.items():
            descriptors[tile_type_from_name(name)] = TerrainDescriptor(
                name=name,
                walkable=bool(entry["walkable"]),
                speed_multiplier=float(entry["speed_multiplier"]),
                color=str(entry.get("color", "#000000")),
            )
        default_name = config.get("terrain", "default", default=DEFAULT_TILE.name.lower())
        return cls(descriptors, default_tile=tile_type_from_name(default_name))

    def lookup(self, tile: int) -> TerrainDescriptor:
        """Return the descriptor for ``tile`` or the default tile's entry."""

        descriptor = self._descriptors.get(tile)
        if descriptor is None:
            return self._descriptors[self.default_tile]
        return descriptor

    def is_walkable(self, tile: int) -> bool:
        return self.lookup(tile).walkable

    def speed_multiplier(self, tile: int) -> float:
        return self.lookup(tile).speed_multiplier

    def __contains__(self, tile: object) -> bool:
        return tile in self._descriptors

    def __iter__(self) -> Iterator[int]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


__all__ = [
    "DEFAULT_TILE",
    "IMPASSABLE_TILE",
    "TERRAIN_CATALOG",
    "TerrainDescriptor",
    "TerrainTable",
    "TileType",
    "tile_type_from_name",
]
