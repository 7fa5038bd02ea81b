import random

from pixel_crawler.config import GameConfig
from pixel_crawler.items.entities import ItemKind
from pixel_crawler.items.spawner import ItemSpawner, count_by_kind
from pixel_crawler.world.floor import Floor
from pixel_crawler.world.generator import FloorGenerator
from pixel_crawler.world.tiles import Cell


def open_floor(width=20, height=20, inner="."):
    rows = ["#" * width]
    rows += ["#" + inner * (width - 2) + "#" for _ in range(height - 2)]
    rows += ["#" * width]
    return Floor.from_lines(rows)


def spawner(seed=1):
    return ItemSpawner(GameConfig(), random.Random(seed), clock=lambda: 12.5)


def test_counts_scale_with_level():
    floor = open_floor()
    for level in (1, 3):
        counts = count_by_kind(spawner().spawn(floor, level))
        assert counts[ItemKind.CURRENCY] == 20 + 5 * level
        assert counts[ItemKind.HEALTH_POTION] == 3 + level
        assert counts[ItemKind.STAMINA_POTION] == 2 + level
        assert counts[ItemKind.RARE_ARTIFACT] == 2 + level


def test_items_occupy_distinct_floor_cell_centres():
    floor = open_floor()
    items = spawner(7).spawn(floor, 2)
    cells = set()
    for item in items:
        assert item.position.x % 32 == 16 and item.position.y % 32 == 16
        p = floor.cell_of(item.position, 32)
        assert floor.get(p.x, p.y) is Cell.FLOOR
        cells.add(p)
        assert item.spawned_at == 12500
        assert not item.collected
    assert len(cells) == len(items)
    assert len({i.id for i in items}) == len(items)


def test_spawning_stops_early_when_cells_run_out():
    floor = Floor.from_lines(["#######", "#.....#", "#######"])
    items = spawner().spawn(floor, 1)
    assert len(items) == 5
    assert all(i.kind is ItemKind.CURRENCY for i in items)


def test_vault_filled_rarest_first_and_keeps_free_cells():
    floor = Floor.from_lines(
        ["#########"]
        + ["#,,,,,..#" for _ in range(5)]
        + ["#########"]
    )
    items = spawner(3).spawn(floor, 2)
    vault_items = [i for i in items if i.id.startswith("vault-")]
    assert len(vault_items) == 25 - 3
    counts = count_by_kind(vault_items)
    assert counts[ItemKind.RARE_ARTIFACT] == 5
    assert counts[ItemKind.HEALTH_POTION] == 3
    assert counts[ItemKind.STAMINA_POTION] == 2
    assert counts[ItemKind.CURRENCY] == 12
    for item in vault_items:
        p = floor.cell_of(item.position, 32)
        assert floor.get(p.x, p.y) is Cell.LIT_FLOOR
    for item in items:
        if item not in vault_items:
            p = floor.cell_of(item.position, 32)
            assert floor.get(p.x, p.y) is Cell.FLOOR


def test_spawn_cell_kept_clear_on_generated_floor():
    floor = FloorGenerator(GameConfig(), random.Random(4)).generate(1)
    items = spawner(4).spawn(floor, 1)
    assert items
    assert all(floor.cell_of(i.position, 32) != floor.spawn for i in items)
