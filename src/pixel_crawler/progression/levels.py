from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Sequence, Tuple

if TYPE_CHECKING:
    from ..player.stats import PlayerStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelTable:
    """Per-tier experience requirements.

    Indexing:
    - ``requirements[0]`` is unused and must be 0 (level 1 needs nothing).
    - ``requirements[i]`` is the experience needed to go from level ``i`` to ``i + 1``.
    - The level cap is ``len(requirements)``; no further leveling beyond it.
    """

    requirements: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.requirements:
            raise ValueError("LevelTable requires at least one entry")
        if self.requirements[0] != 0:
            raise ValueError("Requirement for level 1 must be 0")
        if any(r < 0 for r in self.requirements):
            raise ValueError("Requirements must be non-negative")

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "LevelTable":
        return cls(tuple(int(v) for v in values))

    @property
    def max_level(self) -> int:
        return len(self.requirements)

    def level_for(self, experience: int) -> int:
        """Walk the tiers upward while cumulative experience covers each requirement."""
        level = 1
        total = 0
        for i in range(1, len(self.requirements)):
            if experience >= total + self.requirements[i]:
                total += self.requirements[i]
                level = i + 1
            else:
                break
        return level

    def to_next(self, level: int) -> int:
        """Requirement of the tier above ``level``; 0 once the cap is reached."""
        if level < 1:
            raise ValueError("Level must be >= 1")
        if level >= len(self.requirements):
            return 0
        return self.requirements[level]

    def min_exp_for(self, level: int) -> int:
        """Cumulative experience at which ``level`` starts."""
        if level < 1:
            raise ValueError("Level must be >= 1")
        return sum(self.requirements[1:min(level, len(self.requirements))])

    def progress(self, experience: int) -> float:
        level = self.level_for(experience)
        span = self.to_next(level)
        if span == 0:
            return 1.0
        done = (experience - self.min_exp_for(level)) / span
        return min(1.0, max(0.0, done))

    def remaining(self, experience: int) -> int:
        level = self.level_for(experience)
        if level >= self.max_level:
            return 0
        return self.min_exp_for(level + 1) - experience


def apply_experience(stats: "PlayerStats", amount: int, table: LevelTable) -> "PlayerStats":
    """Add ``amount`` experience and recompute the level from the new total.

    A single grant can cross several tiers; the level is always derived from
    cumulative experience rather than bumped by one.
    """
    if amount < 0:
        raise ValueError("Experience amount cannot be negative")
    experience = stats.experience + amount
    level = max(stats.level, table.level_for(experience))
    if level != stats.level:
        logger.info("Level up: %d -> %d (experience=%d)", stats.level, level, experience)
    return replace(stats, experience=experience, level=level, experience_to_next_level=table.to_next(level))
