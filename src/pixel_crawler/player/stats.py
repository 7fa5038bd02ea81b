from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Tuple


class MovementMode(Enum):
    IDLE = "idle"
    WALKING = "walking"
    RUNNING = "running"


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


@dataclass(frozen=True)
class PlayerStats:
    """Vitals and progression for the player.

    Invariants: 0 <= health <= max_health, 0 <= stamina <= max_stamina,
    level >= 1. Use the ``with_*``/``restore_*`` helpers to keep them.
    """

    health: float = 100
    max_health: float = 100
    stamina: float = 100
    max_stamina: float = 100
    level: int = 1
    experience: int = 0
    experience_to_next_level: int = 10

    def with_health(self, value: float) -> "PlayerStats":
        return replace(self, health=_clamp(value, 0, self.max_health))

    def with_stamina(self, value: float) -> "PlayerStats":
        return replace(self, stamina=_clamp(value, 0, self.max_stamina))

    def restore_health(self, amount: float) -> Tuple["PlayerStats", float]:
        updated = self.with_health(self.health + amount)
        return updated, updated.health - self.health

    def restore_stamina(self, amount: float) -> Tuple["PlayerStats", float]:
        updated = self.with_stamina(self.stamina + amount)
        return updated, updated.stamina - self.stamina

    def problems(self) -> List[str]:
        found = []
        if not 0 <= self.health <= self.max_health:
            found.append(f"health {self.health} outside [0, {self.max_health}]")
        if not 0 <= self.stamina <= self.max_stamina:
            found.append(f"stamina {self.stamina} outside [0, {self.max_stamina}]")
        if self.level < 1:
            found.append(f"level {self.level} < 1")
        if self.experience < 0:
            found.append("negative experience")
        return found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health": self.health,
            "max_health": self.max_health,
            "stamina": self.stamina,
            "max_stamina": self.max_stamina,
            "level": self.level,
            "experience": self.experience,
            "experience_to_next_level": self.experience_to_next_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerStats":
        return cls(
            health=float(data["health"]),
            max_health=float(data["max_health"]),
            stamina=float(data["stamina"]),
            max_stamina=float(data["max_stamina"]),
            level=int(data["level"]),
            experience=int(data["experience"]),
            experience_to_next_level=int(data.get("experience_to_next_level", 0)),
        )


def resolve_mode(requested: MovementMode, stats: PlayerStats) -> MovementMode:
    """Running needs stamina; an exhausted player walks instead."""
    if requested is MovementMode.RUNNING and stats.stamina <= 0:
        return MovementMode.WALKING
    return requested


def update_stamina(
    stats: PlayerStats, mode: MovementMode, dt: float, drain_per_second: float, regen_per_second: float
) -> Tuple[PlayerStats, MovementMode]:
    """Drain while running, regenerate otherwise.

    The drain is clamped at zero and the mode is downgraded to walking in the
    same step, so stamina never goes negative.
    """
    if dt <= 0:
        return stats, resolve_mode(mode, stats)
    if mode is MovementMode.RUNNING:
        stats = stats.with_stamina(stats.stamina - drain_per_second * dt)
        if stats.stamina <= 0:
            return stats, MovementMode.WALKING
        return stats, mode
    return stats.with_stamina(stats.stamina + regen_per_second * dt), mode
