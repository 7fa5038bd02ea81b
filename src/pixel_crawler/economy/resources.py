from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

from ..items.entities import ItemKind


@dataclass(frozen=True)
class CollectedResources:
    """Consumables gathered since the last bulk sale."""

    currency: int = 0
    health_potions: int = 0
    stamina_potions: int = 0

    def add(self, kind: ItemKind, amount: int = 1) -> "CollectedResources":
        if kind is ItemKind.CURRENCY:
            return replace(self, currency=self.currency + amount)
        if kind is ItemKind.HEALTH_POTION:
            return replace(self, health_potions=self.health_potions + amount)
        if kind is ItemKind.STAMINA_POTION:
            return replace(self, stamina_potions=self.stamina_potions + amount)
        return self

    @property
    def is_empty(self) -> bool:
        return self.currency == 0 and self.health_potions == 0 and self.stamina_potions == 0

    @property
    def total(self) -> int:
        return self.currency + self.health_potions + self.stamina_potions

    def cleared(self) -> "CollectedResources":
        return CollectedResources()

    def value(self, prices: Mapping[str, int]) -> int:
        return (
            self.currency * prices.get("currency", 0)
            + self.health_potions * prices.get("health_potions", 0)
            + self.stamina_potions * prices.get("stamina_potions", 0)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "health_potions": self.health_potions,
            "stamina_potions": self.stamina_potions,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CollectedResources":
        return cls(
            currency=int(data.get("currency", 0)),
            health_potions=int(data.get("health_potions", 0)),
            stamina_potions=int(data.get("stamina_potions", 0)),
        )
