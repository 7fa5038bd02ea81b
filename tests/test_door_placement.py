from pixel_crawler.world.generator import place_doors, place_vault_doors, widen_doors
from pixel_crawler.world.grid import Grid
from pixel_crawler.world.rooms import Room, RoomKind
from pixel_crawler.world.tiles import Cell


def test_one_wide_corridor_cells_become_doors_then_wide():
    grid = Grid.from_lines(
        [
            "###########",
            "#...###...#",
            "#.........#",
            "#...###...#",
            "###########",
        ]
    )
    assert place_doors(grid) == 3
    assert [grid.get(x, 2) for x in (4, 5, 6)] == [Cell.DOOR] * 3
    assert grid.get(3, 2) is Cell.FLOOR

    assert widen_doors(grid) == 3
    assert [grid.get(x, 2) for x in (4, 5, 6)] == [Cell.WIDE_DOOR] * 3


def test_single_door_stays_narrow():
    grid = Grid.from_lines(
        [
            "#########",
            "#...#...#",
            "#.......#",
            "#...#...#",
            "#########",
        ]
    )
    assert place_doors(grid) == 1
    assert widen_doors(grid) == 0
    assert grid.get(4, 2) is Cell.DOOR


def test_vertical_passage_detected():
    grid = Grid.from_lines(
        [
            "#####",
            "#...#",
            "##.##",
            "#...#",
            "#####",
        ]
    )
    place_doors(grid)
    assert grid.get(2, 2) is Cell.DOOR


def test_widening_rows_and_columns():
    grid = Grid.from_lines(
        [
            "########",
            "#++#+#+#",
            "######+#",
            "######+#",
            "########",
        ]
    )
    assert widen_doors(grid) == 5
    assert grid.get(1, 1) is Cell.WIDE_DOOR
    assert grid.get(2, 1) is Cell.WIDE_DOOR
    assert grid.get(4, 1) is Cell.DOOR
    assert all(grid.get(6, y) is Cell.WIDE_DOOR for y in (1, 2, 3))


def test_vault_doors_replace_door_and_floor_on_the_ring():
    grid = Grid.from_lines(
        [
            "#########",
            "#########",
            "##,,,####",
            "##,,,=..#",
            "##,,,####",
            "###.#####",
            "#########",
        ]
    )
    vault = Room(2, 2, 3, 3, RoomKind.VAULT)
    assert place_vault_doors(grid, vault) == 2
    assert grid.get(5, 3) is Cell.VAULT_DOOR
    assert grid.get(3, 5) is Cell.VAULT_DOOR
    assert grid.get(6, 3) is Cell.FLOOR


def test_vault_without_openings_is_tolerated(caplog):
    grid = Grid.from_lines(
        [
            "#######",
            "#######",
            "##,,,##",
            "##,,,##",
            "##,,,##",
            "#######",
            "#######",
        ]
    )
    with caplog.at_level("WARNING"):
        assert place_vault_doors(grid, Room(2, 2, 3, 3, RoomKind.VAULT)) == 0
    assert "no door" in caplog.text
