from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from .economy.resources import CollectedResources
from .errors import StateValidationError
from .items.entities import Item
from .player.inventory import DEFAULT_CAPACITY, Inventory
from .player.stats import MovementMode, PlayerStats
from .world.floor import Floor
from .world.geometry import ZERO, Vec2


class Phase(Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlayerState:
    position: Vec2
    stats: PlayerStats = field(default_factory=PlayerStats)
    direction: float = 0.0
    mode: MovementMode = MovementMode.IDLE
    velocity: Vec2 = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": {"x": self.position.x, "y": self.position.y},
            "direction": self.direction,
            "stats": self.stats.to_dict(),
            "mode": self.mode.value,
            "velocity": {"x": self.velocity.x, "y": self.velocity.y},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        pos = data["position"]
        vel = data.get("velocity") or {"x": 0.0, "y": 0.0}
        return cls(
            position=Vec2(float(pos["x"]), float(pos["y"])),
            stats=PlayerStats.from_dict(data["stats"]),
            direction=float(data.get("direction", 0.0)),
            mode=MovementMode(data.get("mode", MovementMode.IDLE.value)),
            velocity=Vec2(float(vel["x"]), float(vel["y"])),
        )


@dataclass(frozen=True)
class GameState:
    """Composite root of a run: the unit of engine mutation and of persistence.

    Instances are immutable; every transition produces a new snapshot via
    ``dataclasses.replace``.
    """

    player: PlayerState
    floor: Floor
    items: Tuple[Item, ...] = ()
    inventory: Inventory = field(default_factory=Inventory.empty)
    currency: int = 0
    collected: CollectedResources = field(default_factory=CollectedResources)
    is_started: bool = False
    is_paused: bool = False
    floor_level: int = 1
    started_at: int = 0
    updated_at: int = 0
    vault_unlocked: bool = False

    @property
    def phase(self) -> Phase:
        if not self.is_started:
            return Phase.NOT_STARTED
        return Phase.PAUSED if self.is_paused else Phase.STARTED

    @property
    def stats(self) -> PlayerStats:
        return self.player.stats

    def remaining_items(self) -> List[Item]:
        return [i for i in self.items if not i.collected]

    # ---- Validation ------------------------------------------------------
    def problems(self, cell_size: int, capacity: int = DEFAULT_CAPACITY) -> List[str]:
        found: List[str] = []
        pos = self.player.position
        if not self.floor.contains_pixel(pos, cell_size):
            found.append(f"player position ({pos.x:.1f},{pos.y:.1f}) outside floor bounds")
        found.extend(self.player.stats.problems())
        if len(self.inventory) != capacity:
            found.append(f"inventory has {len(self.inventory)} slots, expected {capacity}")
        if self.currency < 0:
            found.append("negative currency")
        if self.floor_level < 1:
            found.append(f"floor level {self.floor_level} < 1")
        return found

    def validate(self, cell_size: int, capacity: int = DEFAULT_CAPACITY) -> None:
        found = self.problems(cell_size, capacity)
        if found:
            raise StateValidationError(found)

    # ---- Serialization ---------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "floor": {"width": self.floor.width, "height": self.floor.height, "rows": self.floor.to_lines()},
            "items": [i.to_dict() for i in self.items],
            "inventory": self.inventory.to_list(),
            "currency": self.currency,
            "collected": self.collected.to_dict(),
            "is_started": self.is_started,
            "is_paused": self.is_paused,
            "floor_level": self.floor_level,
            "started_at": self.started_at,
            "updated_at": self.updated_at,
            "vault_unlocked": self.vault_unlocked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        floor = Floor.from_lines(data["floor"]["rows"])
        return cls(
            player=PlayerState.from_dict(data["player"]),
            floor=floor,
            items=tuple(Item.from_dict(i) for i in data.get("items", [])),
            inventory=Inventory.from_list(data["inventory"]),
            currency=int(data.get("currency", 0)),
            collected=CollectedResources.from_dict(data.get("collected", {})),
            is_started=bool(data.get("is_started", False)),
            is_paused=bool(data.get("is_paused", False)),
            floor_level=int(data.get("floor_level", 1)),
            started_at=int(data.get("started_at", 0)),
            updated_at=int(data.get("updated_at", 0)),
            vault_unlocked=bool(data.get("vault_unlocked", False)),
        )
