from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from ..config import GameConfig, MapConfig
from ..errors import GenerationError
from .connectivity import exit_reachable
from .floor import Floor
from .geometry import Point
from .grid import Grid
from .rooms import Room, RoomKind
from .tiles import Cell

logger = logging.getLogger(__name__)


def place_doors(grid: Grid) -> int:
    """Mark 1-wide passage cells as DOOR.

    A FLOOR/LIT_FLOOR cell becomes a door when both perpendicular neighbours
    are WALL and both parallel neighbours are passable. Must run after all
    corridor carving.
    """
    placed = 0
    for y in range(1, grid.height - 1):
        for x in range(1, grid.width - 1):
            if not grid.get(x, y).is_walkable_floor:
                continue
            up, down = grid.get(x, y - 1), grid.get(x, y + 1)
            left, right = grid.get(x - 1, y), grid.get(x + 1, y)
            horizontal = up is Cell.WALL and down is Cell.WALL and left.is_passable and right.is_passable
            vertical = left is Cell.WALL and right is Cell.WALL and up.is_passable and down.is_passable
            if horizontal or vertical:
                grid.set(x, y, Cell.DOOR)
                placed += 1
    return placed


def _promote_run(grid: Grid, run: List[Point]) -> int:
    if len(run) < 2:
        return 0
    for p in run:
        grid.set(p.x, p.y, Cell.WIDE_DOOR)
    return len(run)


def widen_doors(grid: Grid) -> int:
    """Promote runs of two or more contiguous DOOR cells to WIDE_DOOR (rows, then columns)."""
    widened = 0
    for y in range(grid.height):
        run: List[Point] = []
        for x in range(grid.width):
            if grid.get(x, y) is Cell.DOOR:
                run.append(Point(x, y))
                continue
            widened += _promote_run(grid, run)
            run = []
        widened += _promote_run(grid, run)
    for x in range(grid.width):
        run = []
        for y in range(grid.height):
            if grid.get(x, y) is Cell.DOOR:
                run.append(Point(x, y))
                continue
            widened += _promote_run(grid, run)
            run = []
        widened += _promote_run(grid, run)
    return widened


def vault_ring(vault: Room) -> List[Point]:
    """Cells directly outside the four vault borders, corners excluded."""
    ring = [Point(x, vault.y - 1) for x in range(vault.x, vault.right)]
    ring += [Point(x, vault.bottom) for x in range(vault.x, vault.right)]
    ring += [Point(vault.x - 1, y) for y in range(vault.y, vault.bottom)]
    ring += [Point(vault.right, y) for y in range(vault.y, vault.bottom)]
    return ring


def place_vault_doors(grid: Grid, vault: Room) -> int:
    placed = 0
    for p in vault_ring(vault):
        if not grid.in_bounds(p.x, p.y):
            continue
        if grid.get(p.x, p.y) in (Cell.DOOR, Cell.WIDE_DOOR, Cell.FLOOR):
            grid.set(p.x, p.y, Cell.VAULT_DOOR)
            placed += 1
    if placed == 0:
        logger.warning("Vault at (%d,%d) received no door; it stays unreachable", vault.x, vault.y)
    return placed


class FloorGenerator:
    """Builds connected dungeon floors from rooms, L-shaped corridors and doors.

    Layout, room count and grid size scale with the floor level. The random
    stream is injected so floors are reproducible under a fixed seed.
    """

    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or GameConfig()
        self.rng = rng or random.Random()

    @property
    def _map(self) -> MapConfig:
        return self.config.map

    def generate(self, level: int) -> Floor:
        if level < 1:
            raise ValueError("Floor level must be >= 1")
        last: Optional[Floor] = None
        for attempt in range(1, self._map.layout_attempts + 1):
            floor = self._build(level)
            if exit_reachable(floor):
                logger.info(
                    "Generated floor %d (%dx%d, %d rooms) on attempt %d",
                    level, floor.width, floor.height, len(floor.rooms), attempt,
                )
                return floor
            logger.debug("Layout attempt %d for floor %d has no spawn-to-exit path", attempt, level)
            last = floor

        assert last is not None
        repaired = last.replace_all(Cell.VAULT_DOOR, Cell.DOOR)
        if exit_reachable(repaired):
            logger.warning("Floor %d: vault doors reverted to plain doors to keep the exit reachable", level)
            return repaired
        raise GenerationError(f"No connected layout for floor {level} after {self._map.layout_attempts} attempts")

    # ---- Steps -----------------------------------------------------------
    def _build(self, level: int) -> Floor:
        size = self._map.size_for(level)
        grid, rooms = self._place_rooms(size, size)

        if len(rooms) >= 3:
            shop_idx = self.rng.randint(1, max(1, len(rooms) - 2))
            rooms[shop_idx] = rooms[shop_idx].with_kind(RoomKind.SHOP)

        vault: Optional[Room] = None
        if level >= self._map.vault_min_level and len(rooms) >= 2:
            vault = self._place_vault(grid, rooms)

        rooms = self._connect_rooms(grid, rooms, vault)
        if vault is not None:
            rooms.append(vault.marked_connected())

        ordered = sorted(
            (r for r in rooms if r.kind is RoomKind.NORMAL), key=lambda r: r.center.x + r.center.y
        )
        spawn = ordered[0].center
        self._place_exit(grid, ordered[-1])
        self._scatter_obstacles(grid, rooms)
        place_doors(grid)
        widen_doors(grid)
        if vault is not None:
            place_vault_doors(grid, vault)
        for shop in (r for r in rooms if r.kind is RoomKind.SHOP):
            c = shop.center
            if grid.get(c.x, c.y) is Cell.FLOOR:
                grid.set(c.x, c.y, Cell.TERMINAL)

        return Floor(grid.rows(), rooms=tuple(rooms), spawn=spawn)

    def _place_rooms(self, width: int, height: int) -> Tuple[Grid, List[Room]]:
        cfg = self._map
        grid = Grid(width, height)
        min_size = cfg.min_room_size
        max_size = max(min_size, min(cfg.max_room_size, width // 4))
        target = max(cfg.min_room_count, (width * height) // cfg.cells_per_room)
        rooms: List[Room] = []

        for _ in range(target * cfg.attempts_per_room):
            if len(rooms) >= target:
                break
            rw = self.rng.randint(min_size, max_size)
            rh = self.rng.randint(min_size, max_size)
            if width - rw - 2 < 2 or height - rh - 2 < 2:
                continue
            candidate = Room(self.rng.randint(2, width - rw - 2), self.rng.randint(2, height - rh - 2), rw, rh)
            if any(candidate.intersects(r, cfg.room_margin) for r in rooms):
                continue
            grid.carve_room(candidate)
            rooms.append(candidate)

        if len(rooms) < 2:
            logger.warning("Room placement produced %d room(s); using fallback corner rooms", len(rooms))
            grid = Grid(width, height)
            rooms = [Room(3, 3, 6, 6), Room(width - 9, height - 9, 6, 6)]
            for r in rooms:
                grid.carve_room(r)
        logger.debug("Placed %d rooms on %dx%d grid", len(rooms), width, height)
        return grid, rooms

    def _place_vault(self, grid: Grid, rooms: List[Room]) -> Optional[Room]:
        cfg = self._map
        size = cfg.vault_size
        hi_x = grid.width - size - 3
        hi_y = grid.height - size - 3
        if hi_x < 3 or hi_y < 3:
            return None
        for _ in range(cfg.vault_attempts):
            candidate = Room(self.rng.randint(3, hi_x), self.rng.randint(3, hi_y), size, size, RoomKind.VAULT)
            if any(candidate.intersects(r, cfg.vault_margin) for r in rooms):
                continue
            grid.carve_room(candidate, Cell.LIT_FLOOR)
            logger.debug("Placed vault at (%d,%d)", candidate.x, candidate.y)
            return candidate
        logger.debug("No room for a vault after %d attempts", cfg.vault_attempts)
        return None

    def _connect_rooms(self, grid: Grid, rooms: List[Room], vault: Optional[Room]) -> List[Room]:
        ordered = sorted(rooms, key=lambda r: r.center.x + r.center.y)
        for a, b in zip(ordered, ordered[1:]):
            grid.carve_l_corridor(a.center, b.center)

        if vault is not None:
            normal = [r for r in ordered if r.kind is RoomKind.NORMAL] or ordered
            nearest = min(normal, key=vault.manhattan)
            grid.carve_l_corridor(vault.center, nearest.center)

        if len(ordered) >= 2:
            for _ in range(max(1, len(ordered) // 4)):
                a, b = self.rng.sample(ordered, 2)
                grid.carve_l_corridor(a.center, b.center)
        return [r.marked_connected() for r in ordered]

    def _place_exit(self, grid: Grid, room: Room) -> Point:
        """Exit at the room centre, else the first FLOOR cell in the room, else anywhere."""
        c = room.center
        if grid.get(c.x, c.y) is Cell.FLOOR:
            grid.set(c.x, c.y, Cell.EXIT)
            return c
        for p in grid.points():
            if room.contains(p) and grid.get(p.x, p.y) is Cell.FLOOR:
                grid.set(p.x, p.y, Cell.EXIT)
                return p
        for p in grid.points():
            if grid.get(p.x, p.y) is Cell.FLOOR:
                grid.set(p.x, p.y, Cell.EXIT)
                return p
        raise GenerationError("Floor has no FLOOR cell to host the exit")

    def _scatter_obstacles(self, grid: Grid, rooms: List[Room]) -> None:
        for room in rooms:
            if room.kind is RoomKind.VAULT:
                continue
            c = room.center
            for _ in range((room.w * room.h) // self._map.cells_per_obstacle):
                p = Point(
                    self.rng.randint(room.x + 1, room.right - 2),
                    self.rng.randint(room.y + 1, room.bottom - 2),
                )
                if p.manhattan(c) > 2 and grid.get(p.x, p.y) is Cell.FLOOR:
                    grid.set(p.x, p.y, Cell.OBSTACLE)
