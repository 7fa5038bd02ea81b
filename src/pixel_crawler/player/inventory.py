from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..items.entities import Item

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


@dataclass(frozen=True)
class InventorySlot:
    index: int
    item: Optional[Item] = None

    @property
    def is_empty(self) -> bool:
        return self.item is None


@dataclass(frozen=True)
class Inventory:
    """
    Fixed-capacity inventory. ``len()`` is always the capacity and each slot's
    index equals its position; operations return a new inventory.
    """

    slots: Tuple[InventorySlot, ...]

    def __post_init__(self) -> None:
        for i, slot in enumerate(self.slots):
            if slot.index != i:
                raise ValueError(f"Slot at position {i} has index {slot.index}")

    @classmethod
    def empty(cls, capacity: int = DEFAULT_CAPACITY) -> "Inventory":
        return cls(tuple(InventorySlot(i) for i in range(capacity)))

    @property
    def capacity(self) -> int:
        return len(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> Iterator[InventorySlot]:
        return iter(self.slots)

    def __getitem__(self, index: int) -> InventorySlot:
        return self.slots[index]

    def occupied(self) -> List[InventorySlot]:
        return [s for s in self.slots if not s.is_empty]

    @property
    def is_full(self) -> bool:
        return self.first_free() is None

    def first_free(self) -> Optional[int]:
        for slot in self.slots:
            if slot.is_empty:
                return slot.index
        return None

    def try_add(self, item: Item) -> Optional["Inventory"]:
        """Inventory with ``item`` in the first free slot, or None when full."""
        index = self.first_free()
        if index is None:
            logger.warning("Inventory full: cannot add item %s", item.id)
            return None
        logger.debug("Added item %s to inventory slot %d", item.id, index)
        return self._with_slot(index, item)

    def remove(self, index: int) -> "Inventory":
        if not 0 <= index < len(self.slots):
            raise IndexError(f"Inventory slot {index} out of range")
        return self._with_slot(index, None)

    def _with_slot(self, index: int, item: Optional[Item]) -> "Inventory":
        slots = list(self.slots)
        slots[index] = InventorySlot(index, item)
        return Inventory(tuple(slots))

    def to_list(self) -> List[Dict[str, Any]]:
        return [{"index": s.index, "item": s.item.to_dict() if s.item else None} for s in self.slots]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "Inventory":
        return cls(
            tuple(
                InventorySlot(int(entry["index"]), Item.from_dict(entry["item"]) if entry.get("item") else None)
                for entry in data
            )
        )
