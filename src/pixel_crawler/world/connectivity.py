from __future__ import annotations

from collections import deque
from typing import Optional, Set

from .floor import Floor
from .geometry import Point


def reachable_from(floor: Floor, start: Point) -> Set[Point]:
    """Breadth-first flood over traversable cells starting at ``start``."""
    if not floor.in_bounds(start.x, start.y) or not floor.get(start.x, start.y).is_traversable:
        return set()
    seen: Set[Point] = {start}
    queue = deque([start])
    while queue:
        p = queue.popleft()
        for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
            n = Point(p.x + dx, p.y + dy)
            if n in seen or not floor.in_bounds(n.x, n.y):
                continue
            if not floor.get(n.x, n.y).is_traversable:
                continue
            seen.add(n)
            queue.append(n)
    return seen


def exit_reachable(floor: Floor, start: Optional[Point] = None) -> bool:
    start = start if start is not None else floor.spawn
    goal = floor.exit
    if start is None or goal is None:
        return False
    return goal in reachable_from(floor, start)
