from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from .geometry import Point


class RoomKind(Enum):
    NORMAL = "normal"
    SHOP = "shop"
    VAULT = "vault"


@dataclass(frozen=True)
class Room:
    """Rectangular carve region used while building a floor."""

    x: int
    y: int
    w: int
    h: int
    kind: RoomKind = RoomKind.NORMAL
    connected: bool = False

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def center(self) -> Point:
        return Point(self.x + self.w // 2, self.y + self.h // 2)

    def intersects(self, other: "Room", margin: int = 0) -> bool:
        """Overlap test with ``margin`` cells reserved around both rooms."""
        return (
            self.x - margin < other.right
            and self.right + margin > other.x
            and self.y - margin < other.bottom
            and self.bottom + margin > other.y
        )

    def contains(self, p: Point) -> bool:
        return self.x <= p.x < self.right and self.y <= p.y < self.bottom

    def manhattan(self, other: "Room") -> int:
        return self.center.manhattan(other.center)

    def with_kind(self, kind: RoomKind) -> "Room":
        return replace(self, kind=kind)

    def marked_connected(self) -> "Room":
        return replace(self, connected=True)
