import pytest

from config.config_loader import ConfigLoader
from core.unit_manager import (
    UnitError,
    UnitManager,
    UnitNotFoundError,
    UnitPlacementError,
    UnitStateError,
    UnknownUnitTypeError,
)
from entities.unit import UNIT_SIZE, UnitType
from modules.maps.terrain_types import TileType


@pytest.fixture
def manager(movement):
    return UnitManager(movement)


def tick_until_idle(manager, unit, max_ticks=500):
    for _ in range(max_ticks):
        manager.update()
        if not unit.is_moving:
            return
    raise AssertionError("unit never stopped")


def test_create_unit_centres_on_tile(manager, grid):
    unit = manager.create_unit(UnitType.ARCHER, 3, 4)

    assert unit.id == "unit_1"
    assert unit.name == "Archer #1"
    assert unit.tile == (3, 4)
    assert unit.size == (UNIT_SIZE, UNIT_SIZE)
    assert unit.center == grid.grid_to_world(3, 4)
    assert unit.target == unit.position
    assert unit.status == "idle"
    assert not unit.is_moving


def test_ids_increment_and_custom_name(manager):
    manager.create_unit(UnitType.WARRIOR, 0, 0)
    second = manager.create_unit(UnitType.MAGE, 1, 0, name="Merlin")
    assert second.id == "unit_2"
    assert second.name == "Merlin"
    assert second.type_def.name == "Mage"


def test_create_accepts_plain_int_type(manager):
    unit = manager.create_unit(3, 2, 2)
    assert unit.unit_type is UnitType.SCOUT


@pytest.mark.parametrize("unit_type", [99, "dragon"])
def test_unknown_unit_type(manager, unit_type):
    with pytest.raises(UnknownUnitTypeError):
        manager.create_unit(unit_type, 1, 1)


def test_placement_rejected_out_of_bounds(manager):
    with pytest.raises(UnitPlacementError) as excinfo:
        manager.create_unit(UnitType.WARRIOR, 10, 0)
    assert excinfo.value.reason == "out of bounds"
    assert isinstance(excinfo.value, ValueError)


def test_placement_rejected_on_water(manager, grid):
    grid.set_tile(4, 4, TileType.WATER)
    with pytest.raises(UnitPlacementError):
        manager.create_unit(UnitType.WARRIOR, 4, 4)


def test_placement_rejected_on_occupied_tile(manager):
    manager.create_unit(UnitType.WARRIOR, 5, 5)
    with pytest.raises(UnitPlacementError):
        manager.create_unit(UnitType.SCOUT, 5, 5)
    assert manager.total_unit_count() == 1


def test_failed_creation_does_not_consume_id(manager):
    with pytest.raises(UnitError):
        manager.create_unit(UnitType.WARRIOR, -1, 0)
    assert manager.create_unit(UnitType.WARRIOR, 0, 0).id == "unit_1"


def test_spatial_queries(manager):
    unit = manager.create_unit(UnitType.WARRIOR, 2, 3)
    assert manager.is_position_occupied(2, 3)
    assert not manager.is_position_occupied(3, 2)
    assert manager.units_at_tile(2, 3) == [unit]
    assert manager.units_at_tile(0, 0) == []


def test_get_and_all_units(manager):
    unit = manager.create_unit(UnitType.WARRIOR, 1, 1)
    assert manager.get_unit(unit.id) is unit
    assert manager.get_unit("unit_42") is None

    snapshot = manager.all_units()
    snapshot.clear()
    assert unit.id in manager
    assert len(manager) == 1


def test_counts_only_living_units(manager):
    manager.create_unit(UnitType.WARRIOR, 0, 0)
    manager.create_unit(UnitType.WARRIOR, 1, 0)
    archer = manager.create_unit(UnitType.ARCHER, 2, 0)
    manager.kill_unit(archer.id)

    assert manager.unit_type_counts() == {UnitType.WARRIOR: 2}
    assert manager.total_unit_count() == 2


def test_move_unit_errors(manager):
    with pytest.raises(UnitNotFoundError):
        manager.move_unit("unit_9", 1, 1)
    with pytest.raises(KeyError):
        manager.move_unit("unit_9", 1, 1)

    unit = manager.create_unit(UnitType.WARRIOR, 0, 0)
    manager.kill_unit(unit.id)
    with pytest.raises(UnitStateError):
        manager.move_unit(unit.id, 3, 3)


def test_move_to_own_tile_is_noop(manager):
    unit = manager.create_unit(UnitType.WARRIOR, 4, 4)
    assert manager.move_unit(unit.id, 4, 4) is False
    assert not unit.is_moving


def test_moving_unit_sent_back_to_its_tile_stops_there(manager):
    unit = manager.create_unit(UnitType.WARRIOR, 1, 1)
    assert manager.move_unit(unit.id, 8, 1) is True
    for _ in range(3):
        manager.update()
    assert unit.is_moving
    assert unit.tile == (1, 1)

    assert manager.move_unit(unit.id, 1, 1) is False
    assert not unit.is_moving
    assert unit.path is None
    assert unit.status == "idle"

    for _ in range(200):
        manager.update()
    assert unit.tile == (1, 1)
    assert manager.units_at_tile(1, 1) == [unit]


def test_new_move_replaces_path_in_progress(manager):
    unit = manager.create_unit(UnitType.SCOUT, 1, 1)
    manager.move_unit(unit.id, 8, 1)
    manager.update()

    assert manager.move_unit(unit.id, 1, 6) is True
    assert unit.path[-1] == (1, 6)
    tick_until_idle(manager, unit)
    assert unit.tile == (1, 6)


def test_move_unit_walks_and_updates_index(manager):
    unit = manager.create_unit(UnitType.SCOUT, 0, 0)

    assert manager.move_unit(unit.id, 3, 0) is True
    assert unit.status == "moving"

    tick_until_idle(manager, unit)

    assert unit.tile == (3, 0)
    assert unit.status == "idle"
    assert manager.units_at_tile(3, 0) == [unit]
    assert not manager.is_position_occupied(0, 0)


def test_move_to_unreachable_tile_returns_false(manager, grid):
    for y in range(10):
        grid.set_tile(5, y, TileType.WATER)
    unit = manager.create_unit(UnitType.WARRIOR, 1, 1)
    assert manager.move_unit(unit.id, 8, 8) is False
    assert unit.status == "idle"


def test_dead_units_are_not_updated(manager):
    unit = manager.create_unit(UnitType.WARRIOR, 0, 0)
    manager.move_unit(unit.id, 5, 0)
    manager.kill_unit(unit.id)
    position = unit.position
    manager.update()
    assert unit.position == position


def test_remove_unit(manager):
    unit = manager.create_unit(UnitType.MAGE, 6, 6)
    assert manager.remove_unit(unit.id) is unit
    assert not manager.is_position_occupied(6, 6)
    assert manager.get_unit(unit.id) is None
    with pytest.raises(UnitNotFoundError) as excinfo:
        manager.remove_unit(unit.id)
    assert str(excinfo.value) == f"unit not found: {unit.id}"


def test_from_config_uses_movement_section(movement):
    manager = UnitManager.from_config(movement, ConfigLoader())
    unit = manager.create_unit(UnitType.WARRIOR, 1, 1)
    assert unit.size == (16.0, 16.0)
    assert unit.move_speed == 2.0


def test_kill_unit_stops_and_frees_tile(manager):
    unit = manager.create_unit(UnitType.ARCHER, 2, 2)
    manager.move_unit(unit.id, 7, 7)
    manager.update()

    assert manager.kill_unit(unit.id) is unit
    assert not unit.is_alive
    assert unit.status == "dead"
    assert not unit.is_moving
    assert unit.path is None
    assert not manager.is_position_occupied(*unit.tile)
    assert manager.total_unit_count() == 0

    with pytest.raises(UnitStateError):
        manager.kill_unit(unit.id)
    with pytest.raises(UnitNotFoundError):
        manager.kill_unit("unit_42")


def test_dead_unit_tile_can_be_reused(manager):
    fallen = manager.create_unit(UnitType.WARRIOR, 3, 3)
    manager.kill_unit(fallen.id)
    replacement = manager.create_unit(UnitType.MAGE, 3, 3)
    assert manager.units_at_tile(3, 3) == [replacement]
    assert manager.remove_unit(fallen.id) is fallen
    assert manager.units_at_tile(3, 3) == [replacement]
