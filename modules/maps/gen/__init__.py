"""Terrain generation parameters, randomness helpers and the painter."""

from .params import LakeSpec, PathSpec, PondSpec, RiverSpec, TerrainGenParams
from .random import get_rng, rand_phase
from .terrain import TerrainStats, generate_terrain

__all__ = [
    "LakeSpec",
    "PathSpec",
    "PondSpec",
    "RiverSpec",
    "TerrainGenParams",
    "TerrainStats",
    "generate_terrain",
    "get_rng",
    "rand_phase",
]
