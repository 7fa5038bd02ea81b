from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from ..world.geometry import Vec2
from ..world.tiles import Cell

logger = logging.getLogger(__name__)

_DIAGONAL = math.sqrt(0.5)
# Centre, four cardinals and four diagonals on the unit circle.
_SAMPLE_OFFSETS: Tuple[Tuple[float, float], ...] = (
    (0.0, 0.0),
    (0.0, -1.0),
    (0.0, 1.0),
    (1.0, 0.0),
    (-1.0, 0.0),
    (_DIAGONAL, -_DIAGONAL),
    (-_DIAGONAL, -_DIAGONAL),
    (_DIAGONAL, _DIAGONAL),
    (-_DIAGONAL, _DIAGONAL),
)


class CollisionGrid(Protocol):
    """Anything that can answer which cell sits under a pixel coordinate."""

    def cell_at_pixel(self, x: float, y: float, cell_size: int) -> Optional[Cell]: ...


@dataclass(frozen=True)
class MoveResult:
    """Outcome of one movement attempt.

    Attributes:
        accepted: True when any displacement was applied.
        position: Resulting position (unchanged when rejected).
        angle: Facing angle in radians toward the attempted direction, None for a zero intent.
        axis: "both", "x" or "y" for the component that was applied, None when blocked.
    """

    accepted: bool
    position: Vec2
    angle: Optional[float]
    axis: Optional[str] = None


class CollisionResolver:
    """Resolves continuous movement of a circular body against a cell grid."""

    def __init__(self, radius: float, cell_size: int) -> None:
        if radius < 0:
            raise ValueError("radius must be >= 0")
        self.radius = radius
        self.cell_size = cell_size

    def can_occupy(self, grid: CollisionGrid, pos: Vec2) -> bool:
        """True when no sampled point is out of bounds or on a blocking cell."""
        for ox, oy in _SAMPLE_OFFSETS:
            cell = grid.cell_at_pixel(pos.x + ox * self.radius, pos.y + oy * self.radius, self.cell_size)
            if cell is None or cell.blocks_movement:
                return False
        return True

    def attempt_move(self, grid: CollisionGrid, pos: Vec2, direction: Vec2, speed: float, dt: float) -> MoveResult:
        """Move toward ``direction`` for ``dt`` seconds, sliding along blockers.

        Tries the full displacement, then the horizontal component, then the
        vertical one. The facing angle follows the intent even when blocked.
        """
        if direction.is_zero():
            return MoveResult(False, pos, None)
        unit = direction.normalized()
        angle = math.atan2(unit.y, unit.x)
        distance = speed * dt
        if distance <= 0:
            return MoveResult(False, pos, angle)

        # No sub-step may be longer than the body radius, so a long frame
        # cannot carry the body across a one-cell blocker.
        max_step = self.radius if self.radius > 0 else self.cell_size / 2
        count = max(1, int(math.ceil(distance / max_step)))
        step = unit.scaled(distance / count)

        current = pos
        used: Optional[str] = None
        for _ in range(count):
            axis = self._step(grid, current, step)
            if axis is None:
                break
            current = self._apply(current, step, axis)
            if used is None or used == "both":
                used = axis
        if used is None:
            logger.debug("Movement blocked at (%.1f,%.1f) toward %.2f rad", pos.x, pos.y, angle)
            return MoveResult(False, pos, angle)
        if used != "both":
            logger.debug("Sliding along %s from (%.1f,%.1f)", used, pos.x, pos.y)
        return MoveResult(True, current, angle, used)

    @staticmethod
    def _apply(pos: Vec2, step: Vec2, axis: str) -> Vec2:
        if axis == "x":
            return Vec2(pos.x + step.x, pos.y)
        if axis == "y":
            return Vec2(pos.x, pos.y + step.y)
        return Vec2(pos.x + step.x, pos.y + step.y)

    def _step(self, grid: CollisionGrid, pos: Vec2, step: Vec2) -> Optional[str]:
        """Axis of the first of full, x-only, y-only moves that lands on free space."""
        for axis in ("both", "x", "y"):
            if (axis == "x" and step.x == 0) or (axis == "y" and step.y == 0):
                continue
            if self.can_occupy(grid, self._apply(pos, step, axis)):
                return axis
        return None
