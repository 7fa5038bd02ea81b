from __future__ import annotations

import logging
import math
from typing import Dict

from ..world.floor import Floor
from ..world.geometry import Point, Vec2
from ..world.tiles import Cell

logger = logging.getLogger(__name__)


def _distance_to_cell(pos: Vec2, p: Point, cell_size: int) -> float:
    """Distance from ``pos`` to the nearest point of the cell's square."""
    left, top = p.x * cell_size, p.y * cell_size
    nx = min(max(pos.x, left), left + cell_size)
    ny = min(max(pos.y, top), top + cell_size)
    return math.hypot(pos.x - nx, pos.y - ny)


def cells_within(floor: Floor, pos: Vec2, radius: float, cell_size: int):
    """Yield (point, cell) for every cell whose square lies within ``radius`` of ``pos``."""
    reach = int(math.ceil(radius / cell_size)) + 1
    centre = floor.cell_of(pos, cell_size)
    for y in range(centre.y - reach, centre.y + reach + 1):
        for x in range(centre.x - reach, centre.x + reach + 1):
            if not floor.in_bounds(x, y):
                continue
            p = Point(x, y)
            if _distance_to_cell(pos, p, cell_size) <= radius:
                yield p, floor.get(x, y)


def open_nearby_doors(floor: Floor, pos: Vec2, radius: float, cell_size: int) -> Floor:
    """Flip closed DOOR/WIDE_DOOR cells near the player to their open form.

    VAULT_DOOR is left alone; it only opens through an explicit unlock.
    """
    changes: Dict[Point, Cell] = {}
    for p, cell in cells_within(floor, pos, radius, cell_size):
        if cell in (Cell.DOOR, Cell.WIDE_DOOR):
            changes[p] = cell.open_variant()
    if changes:
        logger.debug("Opening %d door cell(s) near (%.1f,%.1f)", len(changes), pos.x, pos.y)
    return floor.replace(changes)


def unlock_vault_doors(floor: Floor) -> Floor:
    return floor.replace_all(Cell.VAULT_DOOR, Cell.VAULT_DOOR_OPEN)


def is_near(floor: Floor, pos: Vec2, radius: float, cell_size: int, *kinds: Cell) -> bool:
    return any(cell in kinds for _, cell in cells_within(floor, pos, radius, cell_size))
