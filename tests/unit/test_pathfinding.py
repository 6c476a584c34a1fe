import math

import pytest

from config.config_loader import ConfigLoader
from core.pathfinding import (
    DIRECTIONS,
    Pathfinder,
    heuristic,
    is_adjacent,
    path_cost,
)
from modules.maps.components import TileGrid
from modules.maps.terrain_types import TileType
from tests.helpers.grids import assert_valid_path, grid_from_rows, paint_ring, water_cells


def test_heuristic_is_euclidean():
    assert heuristic((0, 0), (3, 4)) == 5.0
    assert heuristic((2, 2), (2, 2)) == 0.0


def test_is_adjacent_includes_diagonals_only_at_distance_one():
    assert is_adjacent((1, 1), (2, 2))
    assert is_adjacent((1, 1), (1, 0))
    assert not is_adjacent((1, 1), (1, 1))
    assert not is_adjacent((1, 1), (3, 1))


def test_directions_cover_eight_neighbours():
    assert len(set(DIRECTIONS)) == 8
    assert (0, 0) not in DIRECTIONS


def test_invalid_construction_arguments(grid):
    with pytest.raises(ValueError):
        Pathfinder(grid, max_search_radius=-1)
    with pytest.raises(ValueError):
        Pathfinder(grid, expansion_factor=0)


def test_step_cost_scales_with_speed(pathfinder):
    assert pathfinder.step_cost(1, 0, 1.0) == 1.0
    assert pathfinder.step_cost(1, 1, 1.0) == pytest.approx(math.sqrt(2))
    assert pathfinder.step_cost(0, -1, 1.5) == pytest.approx(1 / 1.5)


def test_max_expansions_tracks_grid_size(pathfinder):
    assert pathfinder.max_expansions == 4 * 10 * 10


def test_same_cell_returns_single_cell_path(pathfinder):
    assert pathfinder.find_path((3, 3), (3, 3)) == [(3, 3)]


def test_straight_path_on_open_grid(pathfinder):
    path = pathfinder.find_path((0, 5), (9, 5))
    assert_valid_path(path, pathfinder, (0, 5), (9, 5))
    assert len(path) == 10
    assert all(y == 5 for _, y in path)


def test_diagonal_path_on_open_grid(pathfinder):
    path = pathfinder.find_path((0, 0), (9, 9))
    assert path == [(i, i) for i in range(10)]


def test_repeated_requests_are_deterministic(grid, pathfinder):
    grid.fill_rect(4, 2, 2, 6, TileType.WATER)
    first = pathfinder.find_path((1, 5), (8, 5))
    second = pathfinder.find_path((1, 5), (8, 5))
    assert first == second


def test_detours_around_clipped_water_rectangle():
    grid = TileGrid(10, 10, tile_size=32)
    # 6 wide, 21 tall; clipping leaves only the bottom row open
    grid.fill_rect(2, -12, 6, 21, TileType.WATER)
    pathfinder = Pathfinder(grid)
    start, goal = (0, 4), (9, 4)

    path = pathfinder.find_path(start, goal)

    assert_valid_path(path, pathfinder, start, goal)
    manhattan = abs(goal[0] - start[0]) + abs(goal[1] - start[1])
    assert len(path) > manhattan
    assert not set(path) & water_cells(grid)
    assert (4, 9) in path


def test_avoids_solid_rectangle(grid, pathfinder):
    grid.fill_rect(3, 1, 4, 8, TileType.WATER)
    path = pathfinder.find_path((1, 5), (8, 5))
    assert_valid_path(path, pathfinder, (1, 5), (8, 5))
    assert not set(path) & water_cells(grid)


def test_enters_ring_through_gap_only():
    grid = TileGrid(15, 15)
    ring = paint_ring(grid, 7, 7, 3, gap=(10, 7))
    pathfinder = Pathfinder(grid)

    path = pathfinder.find_path((1, 1), (7, 7))

    assert_valid_path(path, pathfinder, (1, 1), (7, 7))
    assert not set(path) & ring
    assert (10, 7) in path


def test_walks_around_peninsula():
    grid = grid_from_rows(
        [
            "..........",
            "..........",
            "..~~~~~~..",
            "..~.......",
            "..~.~~~~..",
            "..~.~.....",
            "..~.~.....",
            "..~.......",
            "..~~~~~~~~",
            "..........",
        ]
    )
    pathfinder = Pathfinder(grid)
    path = pathfinder.find_path((3, 6), (9, 9))
    assert_valid_path(path, pathfinder, (3, 6), (9, 9))
    assert not set(path) & water_cells(grid)


def test_enclosed_goal_is_unreachable():
    grid = TileGrid(12, 12)
    paint_ring(grid, 6, 6, 2)
    pathfinder = Pathfinder(grid)
    assert pathfinder.find_path((0, 0), (6, 6)) is None


def test_water_goal_is_relocated_to_nearest_walkable(grid, pathfinder):
    grid.set_tile(5, 5, TileType.WATER)
    path = pathfinder.find_path((0, 5), (5, 5))
    assert path is not None
    assert path[-1] != (5, 5)
    assert heuristic(path[-1], (5, 5)) == 1.0


def test_out_of_bounds_goal_is_relocated_inside(pathfinder):
    path = pathfinder.find_path((5, 5), (12, 5))
    assert path is not None
    assert path[-1] == (9, 5)


def test_out_of_bounds_start_is_relocated(pathfinder):
    path = pathfinder.find_path((-1, 0), (3, 0))
    assert path[0] == (0, 0)
    assert path[-1] == (3, 0)


def test_nearest_walkable_returns_walkable_target_unchanged(pathfinder):
    assert pathfinder.find_nearest_walkable(4, 4) == (4, 4)


def test_nearest_walkable_prefers_true_distance_over_scan_order():
    rows = ["~" * 11 for _ in range(11)]
    grid = grid_from_rows(rows)
    # Corner of the radius-2 square is scanned first but lies at 2.83
    grid.set_tile(3, 3, TileType.GRASS)
    grid.set_tile(5, 7, TileType.GRASS)
    pathfinder = Pathfinder(grid)

    assert pathfinder.find_nearest_walkable(5, 5) == (5, 7)


def test_nearest_walkable_picks_distance_one_neighbour():
    grid = TileGrid(11, 11)
    grid.fill_rect(2, 2, 7, 7, TileType.WATER)
    grid.set_tile(5, 6, TileType.GRASS)
    pathfinder = Pathfinder(grid)

    assert pathfinder.find_nearest_walkable(5, 5) == (5, 6)


def test_nearest_walkable_closest_within_band():
    rows = ["~" * 11 for _ in range(11)]
    grid = grid_from_rows(rows)
    grid.set_tile(2, 5, TileType.GRASS)  # distance 3, scanned first
    grid.set_tile(7, 7, TileType.GRASS)  # distance 2.83
    pathfinder = Pathfinder(grid)

    assert pathfinder.find_nearest_walkable(5, 5) == (7, 7)


def test_nearest_walkable_falls_back_to_centre():
    grid = grid_from_rows(["~" * 6 for _ in range(6)])
    pathfinder = Pathfinder(grid, max_search_radius=3)
    assert pathfinder.find_nearest_walkable(0, 0) == (3, 3)
    assert pathfinder.find_path((0, 0), (5, 5)) is None


def test_never_cuts_through_water_diagonally_onto_water(grid, pathfinder):
    grid.set_tile(1, 1, TileType.WATER)
    path = pathfinder.find_path((0, 0), (2, 2))
    assert (1, 1) not in path
    assert_valid_path(path, pathfinder, (0, 0), (2, 2))


def test_path_cost_on_dirt_road():
    grid = grid_from_rows(["..........", "==========", ".........."])
    pathfinder = Pathfinder(grid)
    path = pathfinder.find_path((0, 1), (9, 1))
    assert all(y == 1 for _, y in path)
    assert path_cost(path, pathfinder) == pytest.approx(9 / 1.5)


def test_from_config_reads_pathfinding_section(grid):
    config = ConfigLoader.from_dict(
        {
            "pathfinding": {"max_search_radius": 5, "expansion_factor": 2},
            "terrain": {
                "default": "grass",
                "tiles": {
                    "grass": {"walkable": True, "speed_multiplier": 1.0},
                    "water": {"walkable": False, "speed_multiplier": 0.0},
                },
            },
        }
    )
    pathfinder = Pathfinder.from_config(grid, config)
    assert pathfinder.max_search_radius == 5
    assert pathfinder.max_expansions == 2 * 10 * 10
    assert TileType.DIRT_PATH not in pathfinder.terrain


@pytest.fixture
def full_size_pathfinder():
    config = ConfigLoader()
    grid = TileGrid(config.get("map", "width"), config.get("map", "height"), config.get("map", "tile_size"))
    return Pathfinder.from_config(grid, config)


def _count_calls(monkeypatch, obj, name):
    calls = []
    original = getattr(obj, name)

    def counting(*args, **kwargs):
        calls.append(args)
        return original(*args, **kwargs)

    monkeypatch.setattr(obj, name, counting)
    return calls


def test_search_reads_terrain_once_on_full_size_map(full_size_pathfinder, monkeypatch):
    grid = full_size_pathfinder.grid
    wall_x = grid.width // 2
    grid.fill_rect(wall_x, 0, 1, grid.height - 1, TileType.WATER)
    tile_reads = _count_calls(monkeypatch, grid, "get_tile")
    snapshots = _count_calls(monkeypatch, grid, "composite")

    start, goal = (wall_x - 10, 0), (wall_x + 10, 0)
    path = full_size_pathfinder.find_path(start, goal)

    assert_valid_path(path, full_size_pathfinder, start, goal)
    assert (wall_x, grid.height - 1) in path
    assert len(snapshots) == 1
    assert len(tile_reads) <= 4


def test_enclosed_goal_on_full_size_map_exhausts_once(full_size_pathfinder, monkeypatch):
    grid = full_size_pathfinder.grid
    paint_ring(grid, 150, 150, 3)
    snapshots = _count_calls(monkeypatch, grid, "composite")

    assert full_size_pathfinder.find_path((10, 10), (150, 150)) is None
    assert len(snapshots) == 1


def test_speed_grid_matches_per_cell_lookup():
    grid = grid_from_rows(["..~", ".=.", "~~."])
    pathfinder = Pathfinder(grid)
    speeds = pathfinder.speed_grid()
    for y in range(grid.height):
        for x in range(grid.width):
            expected = pathfinder.speed_at(x, y) if pathfinder.is_walkable(x, y) else 0.0
            assert speeds[y][x] == expected


def test_hidden_layer_change_seen_by_next_search(grid, pathfinder):
    flood = grid.add_layer("Flood", draw_order=1)
    for y in range(grid.height - 1):
        grid.set_tile_on_layer(flood, 5, y, TileType.WATER)
    assert (5, grid.height - 1) in pathfinder.find_path((2, 0), (8, 0))

    grid.set_layer_visibility(flood, False)
    assert len(pathfinder.find_path((2, 0), (8, 0))) == 7
