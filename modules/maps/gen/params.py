"""Parameters for procedural terrain generation.

Feature positions and radii are expressed as fractions of the map size so the
same parameter set produces a comparable landscape on any grid.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must lie between 0 and 1")


@dataclass(slots=True, frozen=True)
class LakeSpec:
    """Elliptical lake with a noisy shoreline."""

    center_x: float
    center_y: float
    radius_x: float
    radius_y: float
    irregularity: float = 0.3

    def __post_init__(self) -> None:
        _check_fraction("center_x", self.center_x)
        _check_fraction("center_y", self.center_y)
        if self.radius_x <= 0 or self.radius_y <= 0:
            raise ValueError("lake radii must be positive")
        if self.irregularity < 0:
            raise ValueError("irregularity must be non-negative")


@dataclass(slots=True, frozen=True)
class RiverSpec:
    """River joining two lakes, referenced by their index in ``lakes``."""

    source: int
    mouth: int
    width: int = 2
    meander: float = 0.04

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError("river width must be positive")


@dataclass(slots=True, frozen=True)
class PondSpec:
    center_x: float
    center_y: float
    radius: int = 3

    def __post_init__(self) -> None:
        _check_fraction("center_x", self.center_x)
        _check_fraction("center_y", self.center_y)
        if self.radius <= 0:
            raise ValueError("pond radius must be positive")


@dataclass(slots=True, frozen=True)
class PathSpec:
    """Snaking dirt path between two fractional map positions."""

    start: tuple[float, float]
    end: tuple[float, float]
    amplitude: float = 0.04

    def __post_init__(self) -> None:
        for value in (*self.start, *self.end):
            _check_fraction("path endpoint", value)
        if self.amplitude < 0:
            raise ValueError("amplitude must be non-negative")


@dataclass(slots=True)
class TerrainGenParams:
    """Configuration bundle describing the landscape to paint on a grid."""

    DEFAULT_LAKES: ClassVar[tuple[LakeSpec, ...]] = (
        LakeSpec(0.20, 0.15, 0.09, 0.06, 0.3),
        LakeSpec(0.80, 0.225, 0.11, 0.10, 0.4),
        LakeSpec(0.40, 0.60, 0.075, 0.125, 0.5),
        LakeSpec(0.70, 0.80, 0.10, 0.075, 0.3),
        LakeSpec(0.125, 0.85, 0.06, 0.09, 0.4),
    )
    DEFAULT_RIVERS: ClassVar[tuple[RiverSpec, ...]] = (
        RiverSpec(0, 2, width=3),
        RiverSpec(2, 3, width=2),
        RiverSpec(1, 3, width=2),
    )
    DEFAULT_PONDS: ClassVar[tuple[PondSpec, ...]] = (
        PondSpec(0.60, 0.40, 4),
        PondSpec(0.90, 0.60, 3),
        PondSpec(0.25, 0.45, 5),
        PondSpec(0.85, 0.15, 3),
        PondSpec(0.15, 0.70, 4),
        PondSpec(0.55, 0.20, 3),
        PondSpec(0.95, 0.90, 4),
    )
    DEFAULT_PATHS: ClassVar[tuple[PathSpec, ...]] = (
        PathSpec((0.05, 0.5), (0.95, 0.5)),
        PathSpec((0.5, 0.05), (0.5, 0.95)),
        PathSpec((0.1, 0.1), (0.9, 0.9)),
    )

    seed: int | None = None
    lakes: tuple[LakeSpec, ...] = DEFAULT_LAKES
    rivers: tuple[RiverSpec, ...] = DEFAULT_RIVERS
    ponds: tuple[PondSpec, ...] = DEFAULT_PONDS
    paths: tuple[PathSpec, ...] = DEFAULT_PATHS
    #: Maximum random phase shift applied to each lake's shoreline noise.
    shore_jitter: float = 1.0
    layer: int = 0

    def __post_init__(self) -> None:
        for river in self.rivers:
            for index in (river.source, river.mouth):
                if not 0 <= index < len(self.lakes):
                    raise ValueError(f"river references unknown lake {index}")
        if self.shore_jitter < 0:
            raise ValueError("shore_jitter must be non-negative")
        if self.layer < 0:
            raise ValueError("layer must be non-negative")

    @classmethod
    def water_free(cls, seed: int | None = None) -> "TerrainGenParams":
        """Only dirt paths; useful for maps that must stay fully connected."""

        return cls(seed=seed, lakes=(), rivers=(), ponds=())
