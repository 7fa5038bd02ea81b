from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict

from ..world.geometry import Vec2


class ItemKind(Enum):
    CURRENCY = "currency"
    HEALTH_POTION = "health_potion"
    STAMINA_POTION = "stamina_potion"
    RARE_ARTIFACT = "rare_artifact"


@dataclass(frozen=True)
class Item:
    """A collectible lying on the floor (or held in an inventory slot).

    ``spawned_at`` is a millisecond timestamp kept for presentation only.
    """

    id: str
    kind: ItemKind
    position: Vec2
    collected: bool = False
    spawned_at: int = 0

    def mark_collected(self) -> "Item":
        return replace(self, collected=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "position": {"x": self.position.x, "y": self.position.y},
            "collected": self.collected,
            "spawned_at": self.spawned_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        pos = data["position"]
        return cls(
            id=str(data["id"]),
            kind=ItemKind(data["kind"]),
            position=Vec2(float(pos["x"]), float(pos["y"])),
            collected=bool(data.get("collected", False)),
            spawned_at=int(data.get("spawned_at", 0)),
        )
