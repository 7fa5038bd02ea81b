from __future__ import annotations

import logging
from typing import Iterator, List, Sequence, Tuple

from .geometry import Point
from .rooms import Room
from .tiles import Cell

logger = logging.getLogger(__name__)


class Grid:
    """
    Mutable build-time cell grid. Provides bounds-safe access plus the carving
    helpers the floor generator needs. The outer ring of cells is treated as a
    permanent wall: carving helpers never write to it.
    """

    def __init__(self, width: int, height: int, fill: Cell = Cell.WALL) -> None:
        if width < 3 or height < 3:
            raise ValueError("Grid must be at least 3x3 to keep a wall border")
        self.width = width
        self.height = height
        self._cells: List[List[Cell]] = [[fill for _ in range(width)] for _ in range(height)]

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "Grid":
        """Build a grid from text rows using the cell glyphs."""
        rows = [line for line in lines if line]
        grid = cls(len(rows[0]), len(rows))
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                grid._cells[y][x] = Cell.from_glyph(ch)
        return grid

    # ---- Bounds ----------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_interior(self, x: int, y: int) -> bool:
        return 0 < x < self.width - 1 and 0 < y < self.height - 1

    def get(self, x: int, y: int) -> Cell:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell out of bounds: ({x},{y}) not in [0,{self.width})x[0,{self.height})")
        return self._cells[y][x]

    def set(self, x: int, y: int, cell: Cell) -> None:
        if not self.in_bounds(x, y):
            logger.error("Attempt to write out-of-bounds cell at (%d,%d)", x, y)
            return
        self._cells[y][x] = cell

    def points(self) -> Iterator[Point]:
        """Row-major iteration over every cell coordinate."""
        for y in range(self.height):
            for x in range(self.width):
                yield Point(x, y)

    # ---- Carving ---------------------------------------------------------
    def carve_room(self, room: Room, cell: Cell = Cell.FLOOR) -> None:
        for yy in range(room.y, room.bottom):
            for xx in range(room.x, room.right):
                if self.is_interior(xx, yy):
                    self._cells[yy][xx] = cell

    def carve_corridor_cell(self, x: int, y: int) -> None:
        """Open a single corridor cell; only solid wall inside the border is converted."""
        if self.is_interior(x, y) and self._cells[y][x] is Cell.WALL:
            self._cells[y][x] = Cell.FLOOR

    def carve_h_corridor(self, x1: int, x2: int, y: int) -> None:
        step = 1 if x2 >= x1 else -1
        for xx in range(x1, x2, step):
            self.carve_corridor_cell(xx, y)

    def carve_v_corridor(self, y1: int, y2: int, x: int) -> None:
        step = 1 if y2 >= y1 else -1
        for yy in range(y1, y2 + step, step):
            self.carve_corridor_cell(x, yy)

    def carve_l_corridor(self, a: Point, b: Point) -> None:
        """Horizontal run along ``a``'s row, then vertical run along ``b``'s column."""
        self.carve_h_corridor(a.x, b.x, a.y)
        self.carve_v_corridor(a.y, b.y, b.x)

    # ---- Export ----------------------------------------------------------
    def rows(self) -> Tuple[Tuple[Cell, ...], ...]:
        return tuple(tuple(row) for row in self._cells)
