import random

import pytest

from pixel_crawler.config import GameConfig, MapConfig
from pixel_crawler.movement.doors import unlock_vault_doors
from pixel_crawler.world.connectivity import exit_reachable, reachable_from
from pixel_crawler.world.generator import FloorGenerator, vault_ring
from pixel_crawler.world.rooms import RoomKind
from pixel_crawler.world.tiles import Cell

SPARSE = GameConfig(map=MapConfig(cells_per_room=400))


def generate(seed, level, config=None):
    return FloorGenerator(config or GameConfig(), random.Random(seed)).generate(level)


@pytest.mark.parametrize("seed", range(8))
def test_level_one_floor_24x24_has_rooms_one_exit_and_a_path(seed):
    floor = generate(seed, 1)

    assert (floor.width, floor.height) == (24, 24)
    assert len(floor.rooms) >= 2
    assert floor.count(Cell.EXIT) == 1
    assert floor.count(Cell.FLOOR) >= 1
    assert floor.spawn is not None
    assert exit_reachable(floor)


@pytest.mark.parametrize("level", [1, 2, 4, 7])
def test_exit_reachable_from_spawn_across_levels(level):
    for seed in range(3):
        floor = generate(seed, level)
        assert floor.exit in reachable_from(floor, floor.spawn)


def test_grid_size_grows_and_is_capped():
    cfg = GameConfig().map
    assert cfg.size_for(1) == 24
    assert cfg.size_for(2) == 28
    assert cfg.size_for(100) == cfg.max_size
    assert generate(3, 2).width == 28


def test_same_seed_same_floor():
    a = generate(99, 3)
    b = generate(99, 3)
    assert a == b
    assert a.spawn == b.spawn


def test_outer_border_is_solid_wall():
    floor = generate(5, 4)
    for x in range(floor.width):
        assert floor.get(x, 0) is Cell.WALL
        assert floor.get(x, floor.height - 1) is Cell.WALL
    for y in range(floor.height):
        assert floor.get(0, y) is Cell.WALL
        assert floor.get(floor.width - 1, y) is Cell.WALL


def test_exit_is_in_a_normal_room_and_spawn_elsewhere():
    floor = generate(11, 1)
    exit_cell = floor.exit
    normal = floor.rooms_of(RoomKind.NORMAL)
    assert any(r.contains(exit_cell) for r in normal)
    assert floor.spawn != exit_cell


def test_terminal_sits_at_shop_centre():
    for seed in range(10):
        floor = generate(seed, 1)
        shops = floor.rooms_of(RoomKind.SHOP)
        if len(floor.rooms) < 3:
            assert not shops
            continue
        assert len(shops) == 1
        c = shops[0].center
        assert floor.get(c.x, c.y) is Cell.TERMINAL


def test_generated_doors_are_never_left_as_adjacent_narrow_pairs():
    for seed in range(5):
        floor = generate(seed, 1)
        for p in floor.find(Cell.DOOR):
            for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                assert floor.get(p.x + dx, p.y + dy) is not Cell.DOOR


def test_no_vault_on_first_floor():
    for seed in range(5):
        floor = generate(seed, 1)
        assert floor.vault is None
        assert floor.count(Cell.LIT_FLOOR) == 0


def test_vault_is_lit_and_sealed_by_vault_doors():
    floors = [generate(seed, 3, SPARSE) for seed in range(10)]
    with_vault = [f for f in floors if f.vault is not None]
    assert with_vault, "expected at least one vault with sparse rooms"

    for floor in with_vault:
        vault = floor.vault
        assert floor.count(Cell.LIT_FLOOR) == vault.w * vault.h
        ring = set(vault_ring(vault))
        for p in floor.find(Cell.VAULT_DOOR):
            assert p in ring
        if floor.count(Cell.VAULT_DOOR):
            reachable = reachable_from(floor, floor.spawn)
            assert not any(p in reachable for p in floor.find(Cell.LIT_FLOOR))


def test_unlocked_vault_becomes_reachable():
    floors = [generate(seed, 3, SPARSE) for seed in range(10)]
    for floor in floors:
        if floor.vault is None or not floor.count(Cell.VAULT_DOOR):
            continue
        opened = unlock_vault_doors(floor)
        assert opened.count(Cell.VAULT_DOOR) == 0
        reachable = reachable_from(opened, opened.spawn)
        assert any(p in reachable for p in opened.find(Cell.LIT_FLOOR))


def test_invalid_level_rejected():
    with pytest.raises(ValueError):
        FloorGenerator(GameConfig(), random.Random(1)).generate(0)
