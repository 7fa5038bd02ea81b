from __future__ import annotations

from enum import Enum
from typing import Dict


class Cell(Enum):
    """Closed set of cell kinds a floor grid is made of.

    Values are the wire tags used in save files; ``glyph`` is the one
    character used by the text map format.
    """

    FLOOR = "floor"
    WALL = "wall"
    OBSTACLE = "obstacle"
    DOOR = "door"
    DOOR_OPEN = "door_open"
    WIDE_DOOR = "wide_door"
    WIDE_DOOR_OPEN = "wide_door_open"
    EXIT = "exit"
    TERMINAL = "terminal"
    LIT_FLOOR = "lit_floor"
    VAULT_DOOR = "vault_door"
    VAULT_DOOR_OPEN = "vault_door_open"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]

    @classmethod
    def from_glyph(cls, ch: str) -> "Cell":
        try:
            return _BY_GLYPH[ch]
        except KeyError:
            raise ValueError(f"Unknown map glyph: {ch!r}") from None

    @property
    def blocks_movement(self) -> bool:
        """Walls, obstacles and every closed door stop the player."""
        return self in _BLOCKING

    @property
    def is_closed_door(self) -> bool:
        return self in (Cell.DOOR, Cell.WIDE_DOOR, Cell.VAULT_DOOR)

    @property
    def is_passable(self) -> bool:
        """Passability used when deciding where doors go."""
        return self in _PASSABLE

    @property
    def is_traversable(self) -> bool:
        """Cells a player can eventually cross without an explicit unlock."""
        return self not in (Cell.WALL, Cell.OBSTACLE, Cell.VAULT_DOOR)

    @property
    def is_walkable_floor(self) -> bool:
        return self in (Cell.FLOOR, Cell.LIT_FLOOR)

    def open_variant(self) -> "Cell":
        """Open form of an auto-opening door; other cells map to themselves."""
        if self is Cell.DOOR:
            return Cell.DOOR_OPEN
        if self is Cell.WIDE_DOOR:
            return Cell.WIDE_DOOR_OPEN
        return self


_GLYPHS: Dict[Cell, str] = {
    Cell.FLOOR: ".",
    Cell.WALL: "#",
    Cell.OBSTACLE: "o",
    Cell.DOOR: "+",
    Cell.DOOR_OPEN: "'",
    Cell.WIDE_DOOR: "=",
    Cell.WIDE_DOOR_OPEN: "_",
    Cell.EXIT: ">",
    Cell.TERMINAL: "T",
    Cell.LIT_FLOOR: ",",
    Cell.VAULT_DOOR: "V",
    Cell.VAULT_DOOR_OPEN: "v",
}
_BY_GLYPH: Dict[str, Cell] = {g: c for c, g in _GLYPHS.items()}

_BLOCKING = frozenset({Cell.WALL, Cell.OBSTACLE, Cell.DOOR, Cell.WIDE_DOOR, Cell.VAULT_DOOR})

_PASSABLE = frozenset(
    {
        Cell.FLOOR,
        Cell.LIT_FLOOR,
        Cell.DOOR,
        Cell.WIDE_DOOR,
        Cell.DOOR_OPEN,
        Cell.WIDE_DOOR_OPEN,
        Cell.EXIT,
    }
)

__all__ = ["Cell"]
