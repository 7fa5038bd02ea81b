from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from .geometry import Point, Vec2
from .rooms import Room, RoomKind
from .tiles import Cell

logger = logging.getLogger(__name__)

Rows = Tuple[Tuple[Cell, ...], ...]


@dataclass(frozen=True)
class Floor:
    """Immutable grid of cells for one dungeon level.

    Only ``cells`` takes part in equality and persistence. ``rooms`` and
    ``spawn`` are generation metadata kept for centre lookups and are empty
    on floors restored from a save.
    """

    cells: Rows
    rooms: Tuple[Room, ...] = field(default=(), compare=False)
    spawn: Optional[Point] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.cells or not self.cells[0]:
            raise ValueError("Floor must have at least one row and one column")
        width = len(self.cells[0])
        if any(len(row) != width for row in self.cells):
            raise ValueError("Floor rows must all have the same width")

    @property
    def width(self) -> int:
        return len(self.cells[0])

    @property
    def height(self) -> int:
        return len(self.cells)

    # ---- Query -----------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Cell:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell out of bounds: ({x},{y})")
        return self.cells[y][x]

    def cell_of(self, pos: Vec2, cell_size: int) -> Point:
        return Point(math.floor(pos.x / cell_size), math.floor(pos.y / cell_size))

    def cell_center(self, p: Point, cell_size: int) -> Vec2:
        half = cell_size / 2
        return Vec2(p.x * cell_size + half, p.y * cell_size + half)

    def cell_at_pixel(self, x: float, y: float, cell_size: int) -> Optional[Cell]:
        """Cell under a pixel coordinate, or None when outside the floor."""
        if x < 0 or y < 0:
            return None
        cx = int(x // cell_size)
        cy = int(y // cell_size)
        if not self.in_bounds(cx, cy):
            return None
        return self.cells[cy][cx]

    def contains_pixel(self, pos: Vec2, cell_size: int) -> bool:
        return 0 <= pos.x < self.width * cell_size and 0 <= pos.y < self.height * cell_size

    def points(self) -> Iterator[Point]:
        for y in range(self.height):
            for x in range(self.width):
                yield Point(x, y)

    def find(self, *kinds: Cell) -> List[Point]:
        """All coordinates holding any of ``kinds``, in row-major order."""
        wanted = set(kinds)
        return [p for p in self.points() if self.cells[p.y][p.x] in wanted]

    def count(self, kind: Cell) -> int:
        return sum(row.count(kind) for row in self.cells)

    @property
    def exit(self) -> Optional[Point]:
        found = self.find(Cell.EXIT)
        return found[0] if found else None

    def rooms_of(self, kind: RoomKind) -> List[Room]:
        return [r for r in self.rooms if r.kind is kind]

    @property
    def vault(self) -> Optional[Room]:
        vaults = self.rooms_of(RoomKind.VAULT)
        return vaults[0] if vaults else None

    # ---- Update ----------------------------------------------------------
    def replace(self, changes: Mapping[Point, Cell]) -> "Floor":
        """New floor with ``changes`` applied; returns ``self`` when nothing differs."""
        effective = {p: c for p, c in changes.items() if self.get(p.x, p.y) is not c}
        if not effective:
            return self
        rows = [list(row) for row in self.cells]
        for p, c in effective.items():
            rows[p.y][p.x] = c
        return Floor(tuple(tuple(r) for r in rows), rooms=self.rooms, spawn=self.spawn)

    def replace_all(self, old: Cell, new: Cell) -> "Floor":
        return self.replace({p: new for p in self.find(old)})

    # ---- Text form -------------------------------------------------------
    def to_lines(self) -> List[str]:
        return ["".join(c.glyph for c in row) for row in self.cells]

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "Floor":
        rows = [line.rstrip("\n") for line in lines if line.strip()]
        if not rows:
            raise ValueError("No map lines provided")
        return cls(tuple(tuple(Cell.from_glyph(ch) for ch in row) for row in rows))
